"""
Card store: the single writer for cards, decks and study sessions.

State is an immutable StoreSnapshot. Every operation computes a new
snapshot from the current one and swaps it in under a lock, so readers
always see whole records. Operations that reference an unknown id are
no-ops and return None (or False).

After each commit the snapshot is handed to the SnapshotRepository on a
best-effort basis; persistence failures are logged, never raised.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, TypeVar

from mindcolony.application.id_service import (
    generate_card_id,
    generate_deck_id,
    generate_session_id,
)
from mindcolony.application.scheduler import clamp_box_level
from mindcolony.application.utils.time import Clock, local_now
from mindcolony.domain.constants import ALL_DECKS
from mindcolony.domain.models import (
    Card,
    DailyStats,
    Deck,
    ScheduleResult,
    StudySession,
)
from mindcolony.domain.ports import SnapshotRepository, StoreSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

CARD_CONTENT_FIELDS = frozenset({"front", "back", "hints", "tags", "deck_id"})
DECK_EDITABLE_FIELDS = frozenset({"name", "description", "color"})


def _replace_item(items: tuple, item_id: str, new_item: Any) -> tuple:
    return tuple(new_item if i.id == item_id else i for i in items)


def _find(items: Iterable[T], item_id: str) -> T | None:
    for item in items:
        if item.id == item_id:  # type: ignore[attr-defined]
            return item
    return None


def _adjust_count(decks: tuple[Deck, ...], deck_id: str, delta: int) -> tuple[Deck, ...]:
    return tuple(
        replace(d, card_count=d.card_count + delta) if d.id == deck_id else d for d in decks
    )


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(v for v in values if v))


class CardStore:
    """
    In-process store with a single-writer update contract.

    Args:
        repository: Optional port used to persist each committed snapshot.
        snapshot: Initial state; defaults to an empty store.
        clock: Time source for created/started/ended stamps.
    """

    def __init__(
        self,
        repository: SnapshotRepository | None = None,
        snapshot: StoreSnapshot | None = None,
        clock: Clock | None = None,
    ):
        self._repo = repository
        self._state = snapshot or StoreSnapshot()
        self._clock = clock or local_now
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Core update contract
    # ------------------------------------------------------------------

    def update(self, fn: Callable[[StoreSnapshot], tuple[StoreSnapshot, T]]) -> T:
        """
        Apply `fn` to the current snapshot and commit the snapshot it returns.

        `fn` must be pure: it receives the current snapshot and returns
        (new_snapshot, result). Returning the same snapshot object means
        nothing changed and skips persistence. Saves happen under the lock,
        so snapshots reach the repository in commit order.
        """
        with self._lock:
            new_state, result = fn(self._state)
            if new_state is not self._state:
                self._state = new_state
                self._persist(new_state)
        return result

    def snapshot(self) -> StoreSnapshot:
        return self._state

    def _persist(self, state: StoreSnapshot) -> None:
        if self._repo is None:
            return
        try:
            self._repo.save(state)
        except Exception as e:
            logger.warning(f"Failed to persist store snapshot: {e}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def cards(self) -> tuple[Card, ...]:
        return self._state.cards

    @property
    def decks(self) -> tuple[Deck, ...]:
        return self._state.decks

    @property
    def sessions(self) -> tuple[StudySession, ...]:
        return self._state.sessions

    @property
    def daily_stats(self) -> tuple[DailyStats, ...]:
        return self._state.daily_stats

    @property
    def current_session(self) -> StudySession | None:
        return self._state.current_session

    def get_card(self, card_id: str) -> Card | None:
        return _find(self._state.cards, card_id)

    def get_deck(self, deck_id: str) -> Deck | None:
        return _find(self._state.decks, deck_id)

    def cards_by_deck(self, deck_id: str) -> list[Card]:
        return [c for c in self._state.cards if c.deck_id == deck_id]

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def add_card(
        self,
        deck_id: str,
        front: str,
        back: str,
        hints: Iterable[str] = (),
        tags: Iterable[str] = (),
    ) -> Card | None:
        """Create a card in box 1, due now. Returns None if the deck is unknown."""
        now = self._clock()
        card = Card(
            id=generate_card_id(),
            front=front,
            back=back,
            deck_id=deck_id,
            next_review_at=now,
            created_at=now,
            hints=[h.strip() for h in hints if h.strip()],
            tags=_unique(tags),
        )

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, Card | None]:
            if _find(state.decks, deck_id) is None:
                logger.debug(f"add_card: unknown deck {deck_id}")
                return state, None
            return (
                replace(
                    state,
                    cards=state.cards + (card,),
                    decks=_adjust_count(state.decks, deck_id, +1),
                ),
                card,
            )

        return self.update(apply)

    def update_card(self, card_id: str, **changes: Any) -> Card | None:
        """
        Edit a card's content fields. Scheduling fields are not editable here.

        Moving a card to another deck (deck_id) keeps both decks' counts in step.
        """
        invalid = set(changes) - CARD_CONTENT_FIELDS
        if invalid:
            raise ValueError(f"Not editable card fields: {sorted(invalid)}")
        if "tags" in changes:
            changes["tags"] = _unique(changes["tags"])
        if "hints" in changes:
            changes["hints"] = [h.strip() for h in changes["hints"] if h.strip()]

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, Card | None]:
            card = _find(state.cards, card_id)
            if card is None:
                logger.debug(f"update_card: unknown card {card_id}")
                return state, None

            decks = state.decks
            new_deck = changes.get("deck_id", card.deck_id)
            if new_deck != card.deck_id:
                if _find(decks, new_deck) is None:
                    logger.debug(f"update_card: unknown target deck {new_deck}")
                    return state, None
                decks = _adjust_count(decks, card.deck_id, -1)
                decks = _adjust_count(decks, new_deck, +1)

            updated = replace(card, **changes)
            return (
                replace(state, cards=_replace_item(state.cards, card_id, updated), decks=decks),
                updated,
            )

        return self.update(apply)

    def delete_card(self, card_id: str) -> bool:
        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, bool]:
            card = _find(state.cards, card_id)
            if card is None:
                logger.debug(f"delete_card: unknown card {card_id}")
                return state, False
            return (
                replace(
                    state,
                    cards=tuple(c for c in state.cards if c.id != card_id),
                    decks=_adjust_count(state.decks, card.deck_id, -1),
                ),
                True,
            )

        return self.update(apply)

    def move_card_to_box(self, card_id: str, box_level: int) -> Card | None:
        """Manually place a card in a box. The due time is left unchanged."""
        level = clamp_box_level(box_level)

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, Card | None]:
            card = _find(state.cards, card_id)
            if card is None:
                return state, None
            updated = replace(card, box_level=level)
            return replace(state, cards=_replace_item(state.cards, card_id, updated)), updated

        return self.update(apply)

    # ------------------------------------------------------------------
    # Decks
    # ------------------------------------------------------------------

    def add_deck(self, name: str, description: str = "", color: str | None = None) -> Deck:
        deck = Deck(
            id=generate_deck_id(),
            name=name,
            description=description,
            created_at=self._clock(),
            **({"color": color} if color else {}),
        )
        return self.update(lambda state: (replace(state, decks=state.decks + (deck,)), deck))

    def update_deck(self, deck_id: str, **changes: Any) -> Deck | None:
        invalid = set(changes) - DECK_EDITABLE_FIELDS
        if invalid:
            raise ValueError(f"Not editable deck fields: {sorted(invalid)}")

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, Deck | None]:
            deck = _find(state.decks, deck_id)
            if deck is None:
                logger.debug(f"update_deck: unknown deck {deck_id}")
                return state, None
            updated = replace(deck, **changes)
            return replace(state, decks=_replace_item(state.decks, deck_id, updated)), updated

        return self.update(apply)

    def delete_deck(self, deck_id: str) -> bool:
        """Delete a deck and every card that belongs to it."""

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, bool]:
            if _find(state.decks, deck_id) is None:
                logger.debug(f"delete_deck: unknown deck {deck_id}")
                return state, False
            return (
                replace(
                    state,
                    decks=tuple(d for d in state.decks if d.id != deck_id),
                    cards=tuple(c for c in state.cards if c.deck_id != deck_id),
                ),
                True,
            )

        return self.update(apply)

    # ------------------------------------------------------------------
    # Sessions and reviews
    # ------------------------------------------------------------------

    def open_session(self, deck_id: str = ALL_DECKS, scope: str | None = None) -> StudySession:
        """
        Open a fresh session, replacing any open one without finalizing it.

        `scope` is the due-scope key; it defaults to `deck_id`.
        """
        session = StudySession(
            id=generate_session_id(),
            deck_id=deck_id,
            scope=scope or deck_id,
            started_at=self._clock(),
        )
        return self.update(lambda state: (replace(state, current_session=session), session))

    def reset_session_counters(self) -> StudySession | None:
        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, StudySession | None]:
            if state.current_session is None:
                return state, None
            session = replace(
                state.current_session, cards_reviewed=0, correct_answers=0, hints_used=0
            )
            return replace(state, current_session=session), session

        return self.update(apply)

    def record_review(
        self,
        card_id: str,
        schedule: Callable[[Card], ScheduleResult],
        was_correct: bool,
        hints_used: int = 0,
        elapsed_ms: int = 0,
        now: datetime | None = None,
    ) -> Card | None:
        """
        Write one answer back: card scheduling fields and counters, the open
        session's counters and today's DailyStats, in a single commit.

        `schedule` receives the card as stored at commit time.
        """
        now = now or self._clock()

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, Card | None]:
            card = _find(state.cards, card_id)
            if card is None:
                logger.debug(f"record_review: unknown card {card_id}")
                return state, None

            result = schedule(card)
            updated = replace(
                card,
                box_level=result.box_level,
                difficulty=result.difficulty,
                next_review_at=result.next_review_at,
                review_count=card.review_count + 1,
                correct_count=card.correct_count + (1 if was_correct else 0),
            )

            session = state.current_session
            if session is not None:
                session = replace(
                    session,
                    cards_reviewed=session.cards_reviewed + 1,
                    correct_answers=session.correct_answers + (1 if was_correct else 0),
                    hints_used=session.hints_used + max(hints_used, 0),
                )

            return (
                replace(
                    state,
                    cards=_replace_item(state.cards, card_id, updated),
                    current_session=session,
                    daily_stats=_record_daily(
                        state.daily_stats, now, was_correct, max(elapsed_ms, 0)
                    ),
                ),
                updated,
            )

        return self.update(apply)

    def finalize_session(self) -> StudySession | None:
        """Stamp the open session's end time and append it to history."""
        now = self._clock()

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, StudySession | None]:
            if state.current_session is None:
                return state, None
            ended = replace(state.current_session, ended_at=now)
            decks = tuple(
                replace(d, last_studied=now) if d.id == ended.deck_id else d
                for d in state.decks
            )
            return (
                replace(
                    state,
                    sessions=state.sessions + (ended,),
                    current_session=None,
                    decks=decks,
                ),
                ended,
            )

        return self.update(apply)

    def abandon_session(self) -> StudySession | None:
        """Drop the open session without adding it to history."""

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, StudySession | None]:
            if state.current_session is None:
                return state, None
            return replace(state, current_session=None), state.current_session

        return self.update(apply)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def import_records(self, decks: Iterable[Deck], cards: Iterable[Card]) -> int:
        """
        Bulk-insert prepared decks and cards. Cards whose deck is unknown are
        skipped; deck counts are recomputed for the inserted cards.

        Returns:
            Number of cards inserted.
        """
        decks = tuple(decks)
        cards = tuple(cards)

        def apply(state: StoreSnapshot) -> tuple[StoreSnapshot, int]:
            known = {d.id for d in state.decks} | {d.id for d in decks}
            new_decks = state.decks + tuple(replace(d, card_count=0) for d in decks)
            accepted = tuple(c for c in cards if c.deck_id in known)
            for c in accepted:
                new_decks = _adjust_count(new_decks, c.deck_id, +1)
            return (
                replace(state, decks=new_decks, cards=state.cards + accepted),
                len(accepted),
            )

        return self.update(apply)


def _record_daily(
    stats: tuple[DailyStats, ...], now: datetime, was_correct: bool, elapsed_ms: int
) -> tuple[DailyStats, ...]:
    today = now.date().isoformat()
    correct = 1 if was_correct else 0

    for entry in stats:
        if entry.date == today:
            updated = replace(
                entry,
                cards_reviewed=entry.cards_reviewed + 1,
                correct_answers=entry.correct_answers + correct,
                time_spent_ms=entry.time_spent_ms + elapsed_ms,
            )
            return tuple(updated if s.date == today else s for s in stats)

    yesterday = (now.date() - timedelta(days=1)).isoformat()
    previous = next((s for s in stats if s.date == yesterday), None)
    return stats + (
        DailyStats(
            date=today,
            cards_reviewed=1,
            correct_answers=correct,
            time_spent_ms=elapsed_ms,
            streak=previous.streak + 1 if previous else 1,
        ),
    )


