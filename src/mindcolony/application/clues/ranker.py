"""
Clue ranking.

Runs every generator for a card, adjusts each clue's base weight by the
card's state and returns the clues sorted by adjusted weight. Ties keep
generator declaration order.
"""

import logging
import random
from collections.abc import Sequence
from dataclasses import replace

from mindcolony.domain.constants import (
    CLUSTER_LOW_ACCURACY_BOOST,
    DIFFICULTY_NEW_BOOST,
    GRAPH_HARD_BOOST,
    MAX_CLUE_WEIGHT,
    WEAK_ACCURACY_THRESHOLD,
)
from mindcolony.domain.models import Card, Clue, ClueType, Deck, Difficulty

from .generators import ClueContext, generate_clues

logger = logging.getLogger(__name__)
feedback_logger = logging.getLogger("mindcolony.clues.feedback")


def adjust_weight(clue: Clue, card: Card) -> float:
    weight = clue.weight

    if clue.type == ClueType.GRAPH and card.difficulty == Difficulty.HARD:
        weight += GRAPH_HARD_BOOST

    if clue.type == ClueType.DIFFICULTY and card.difficulty == Difficulty.NEW:
        weight += DIFFICULTY_NEW_BOOST

    if clue.type == ClueType.CLUSTER and card.review_count > 0:
        if card.correct_count / card.review_count < WEAK_ACCURACY_THRESHOLD:
            weight += CLUSTER_LOW_ACCURACY_BOOST

    return min(weight, MAX_CLUE_WEIGHT)


def rank(clues: Sequence[Clue], card: Card) -> list[Clue]:
    adjusted = [replace(c, weight=adjust_weight(c, card)) for c in clues]
    # sorted() is stable, so equal weights keep generator order
    return sorted(adjusted, key=lambda c: c.weight, reverse=True)


class ClueRanker:
    """
    Produces ranked advisory clues for a card.

    Read-only: never mutates cards or decks.

    Args:
        rng: Random source for generators that pick from a pool.
            Pass a seeded random.Random for deterministic output.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def rank_clues(
        self,
        card: Card,
        deck: Deck | None,
        corpus: Sequence[Card],
        decks: Sequence[Deck] = (),
    ) -> list[Clue]:
        ctx = ClueContext(card=card, deck=deck, all_cards=corpus, all_decks=decks)
        ranked = rank(generate_clues(ctx, self._rng), card)
        logger.debug(f"Ranked {len(ranked)} clues for {card.id}")
        return ranked


def record_clue_feedback(card_id: str, clue_id: str, helpful: bool) -> None:
    """
    Log a helpful / not-helpful vote on a clue.

    Telemetry only: ranking weights do not read this.
    """
    feedback_logger.info(
        "Clue feedback logged: card_id=%s clue_id=%s helpful=%s", card_id, clue_id, helpful
    )
