"""
Due-set selection.

Three scopes with deliberately different due semantics:

1. AllDue:  cards due at any point today (end-of-day cutoff).
2. ByBox:   every card in the box, due or not.
3. ByDeck:  cards of the deck due right now (strict cutoff).

Results keep store insertion order.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from mindcolony.application.store import CardStore
from mindcolony.application.utils.time import Clock, end_of_day, local_now
from mindcolony.domain.models import AllDue, ByBox, ByDeck, Card, DueScope

logger = logging.getLogger(__name__)


def cards_due_today(cards: Iterable[Card], now: datetime) -> list[Card]:
    cutoff = end_of_day(now)
    return [c for c in cards if c.next_review_at <= cutoff]


def cards_in_box(cards: Iterable[Card], level: int) -> list[Card]:
    return [c for c in cards if c.box_level == level]


def cards_due_in_deck(cards: Iterable[Card], deck_id: str, now: datetime) -> list[Card]:
    return [c for c in cards if c.deck_id == deck_id and c.next_review_at <= now]


def select_due(cards: Iterable[Card], scope: DueScope, now: datetime) -> list[Card]:
    if isinstance(scope, ByBox):
        return cards_in_box(cards, scope.level)
    if isinstance(scope, ByDeck):
        return cards_due_in_deck(cards, scope.deck_id, now)
    if isinstance(scope, AllDue):
        return cards_due_today(cards, now)
    raise TypeError(f"Unknown due scope: {scope!r}")


class DueSetSelector:
    """Queries the card store for cards eligible for study."""

    def __init__(self, store: CardStore, clock: Clock | None = None):
        self._store = store
        self._clock = clock or local_now

    def list_due_cards(self, scope: DueScope | None = None) -> list[Card]:
        """
        Args:
            scope: Selection mode; defaults to AllDue.

        Returns:
            Matching cards in insertion order (possibly empty).
        """
        scope = scope or AllDue()
        due = select_due(self._store.cards, scope, self._clock())
        logger.debug(f"Due set for {scope.key}: {len(due)} cards")
        return due

    def count_due_today(self) -> int:
        return len(cards_due_today(self._store.cards, self._clock()))
