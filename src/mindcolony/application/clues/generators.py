"""
Clue generators.

Each generator looks at one card and the surrounding corpus and either
returns a Clue or declines with None. Generators are side-effect free;
the semantic generator draws from the random source it is given.
"""

import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from mindcolony.domain.constants import (
    CLUE_BASE_WEIGHTS,
    MAX_RELATED_CARDS,
    MIN_WEAK_CLUSTER_SIZE,
    WEAK_ACCURACY_THRESHOLD,
)
from mindcolony.domain.models import Card, Clue, ClueType, Deck, Difficulty


@dataclass(frozen=True)
class ClueContext:
    card: Card
    deck: Deck | None
    all_cards: Sequence[Card]
    all_decks: Sequence[Deck] = ()


ClueGenerator = Callable[[ClueContext, random.Random], Clue | None]

SEMANTIC_HINTS = (
    "Think about the context where you'd use this.",
    "Consider similar words or concepts you already know.",
    "Try to visualize what this represents.",
    "Connect this to a real-world example.",
    "Break it down into smaller parts.",
)

DECK_CONTEXTS = {
    "Japanese Basics": "Japanese vocabulary often connects to cultural concepts.",
    "Spanish Verbs": "Spanish verb conjugations follow predictable patterns.",
}
DEFAULT_CONTEXT = "This concept appears in foundational learning materials."

BOX_MESSAGES = {
    1: "New card - First encounter. Build initial memory.",
    2: "Learning stage - Short-term memory forming.",
    3: "Familiar - Transitioning to long-term memory.",
    4: "Well-known - Strong memory trace established.",
    5: "Mastered - Deep learning achieved.",
}


def _clue_id(kind: ClueType, card: Card) -> str:
    return f"{kind.value}-{card.id}"


def _weak_accuracy(card: Card) -> float:
    """Accuracy for weakness checks; unreviewed cards are not known to be weak."""
    accuracy = card.accuracy
    return 1.0 if accuracy is None else accuracy


def related_cards_clue(ctx: ClueContext, rng: random.Random) -> Clue | None:
    related = [
        c for c in ctx.all_cards if c.deck_id == ctx.card.deck_id and c.id != ctx.card.id
    ][:MAX_RELATED_CARDS]
    if not related:
        return None

    return Clue(
        id=_clue_id(ClueType.GRAPH, ctx.card),
        text=f"Related to: {', '.join(c.front for c in related)}",
        type=ClueType.GRAPH,
        weight=CLUE_BASE_WEIGHTS["graph"],
        expanded="These concepts share connections in your knowledge graph.",
    )


def semantic_clue(ctx: ClueContext, rng: random.Random) -> Clue | None:
    return Clue(
        id=_clue_id(ClueType.SEMANTIC, ctx.card),
        text=rng.choice(SEMANTIC_HINTS),
        type=ClueType.SEMANTIC,
        weight=CLUE_BASE_WEIGHTS["semantic"],
    )


def context_clue(ctx: ClueContext, rng: random.Random) -> Clue | None:
    deck_name = ctx.deck.name if ctx.deck else None
    return Clue(
        id=_clue_id(ClueType.RAG, ctx.card),
        text=DECK_CONTEXTS.get(deck_name or "", DEFAULT_CONTEXT),
        type=ClueType.RAG,
        weight=CLUE_BASE_WEIGHTS["rag"],
        expanded="Generated from your learning materials and related sources.",
    )


def difficulty_message(card: Card) -> str:
    accuracy = (card.accuracy or 0.0) * 100
    messages = {
        Difficulty.NEW: "This is new material. Take your time to understand it.",
        Difficulty.HARD: (
            f"You've found this challenging ({accuracy:.0f}% accuracy). "
            "Focus on building connections."
        ),
        Difficulty.MEDIUM: "You're making progress. Keep reinforcing this concept.",
        Difficulty.EASY: "You're doing well with this! Quick review should suffice.",
        Difficulty.MASTERED: "Almost mastered! Just a quick refresher.",
    }
    return messages[Difficulty(card.difficulty)]


def difficulty_clue(ctx: ClueContext, rng: random.Random) -> Clue | None:
    return Clue(
        id=_clue_id(ClueType.DIFFICULTY, ctx.card),
        text=difficulty_message(ctx.card),
        type=ClueType.DIFFICULTY,
        weight=CLUE_BASE_WEIGHTS["difficulty"],
    )


def box_clue(ctx: ClueContext, rng: random.Random) -> Clue | None:
    return Clue(
        id=_clue_id(ClueType.BOX, ctx.card),
        text=BOX_MESSAGES.get(ctx.card.box_level, BOX_MESSAGES[1]),
        type=ClueType.BOX,
        weight=CLUE_BASE_WEIGHTS["box"],
    )


def weak_cluster_clue(ctx: ClueContext, rng: random.Random) -> Clue | None:
    weak = sum(
        1
        for c in ctx.all_cards
        if c.deck_id == ctx.card.deck_id and _weak_accuracy(c) < WEAK_ACCURACY_THRESHOLD
    )
    if weak < MIN_WEAK_CLUSTER_SIZE:
        return None

    return Clue(
        id=_clue_id(ClueType.CLUSTER, ctx.card),
        text=(
            f"This belongs to a cluster where you missed {weak} cards. "
            "Pay extra attention."
        ),
        type=ClueType.CLUSTER,
        weight=CLUE_BASE_WEIGHTS["cluster"],
        expanded="Focusing on weak clusters accelerates overall learning.",
    )


# Declaration order doubles as the tie-break order when ranking.
GENERATORS: dict[ClueType, ClueGenerator] = {
    ClueType.GRAPH: related_cards_clue,
    ClueType.SEMANTIC: semantic_clue,
    ClueType.RAG: context_clue,
    ClueType.DIFFICULTY: difficulty_clue,
    ClueType.BOX: box_clue,
    ClueType.CLUSTER: weak_cluster_clue,
}


def generate_clues(ctx: ClueContext, rng: random.Random) -> list[Clue]:
    clues = []
    for generator in GENERATORS.values():
        clue = generator(ctx, rng)
        if clue is not None:
            clues.append(clue)
    return clues
