"""
Study session controller.

Coordinates one study run over a fixed snapshot of the due set:

    IDLE --start (non-empty)--> ACTIVE --cursor reaches end--> COMPLETE
    ACTIVE/COMPLETE --end or abandon--> IDLE
    ACTIVE/COMPLETE --restart--> ACTIVE (same snapshot, counters zeroed)

The due set is captured once at start and never re-queried, so cards
rescheduled during the run do not come back into its queue.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from mindcolony.application.clues import ClueRanker, record_clue_feedback
from mindcolony.application.due_selector import DueSetSelector
from mindcolony.application.scheduler import advance
from mindcolony.application.store import CardStore
from mindcolony.application.utils.time import Clock, local_now
from mindcolony.domain.constants import ALL_DECKS
from mindcolony.domain.models import AllDue, ByDeck, Card, Clue, DueScope, StudySession

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionHandle:
    """What a caller needs to drive a started session."""

    scope: DueScope
    card_ids: tuple[str, ...]
    session_id: str | None

    @property
    def is_empty(self) -> bool:
        return not self.card_ids


def session_deck_id(scope: DueScope | None) -> str:
    """Deck id recorded on a StudySession for the given scope."""
    if isinstance(scope, ByDeck):
        return scope.deck_id
    return ALL_DECKS


class SessionController:
    """
    Drives study runs against the card store.

    Args:
        store: Card store (single writer).
        selector: Due-set selector used to snapshot the queue at start.
        ranker: Clue ranker for display-only hints.
        clock: Time source for scheduling.
    """

    def __init__(
        self,
        store: CardStore,
        selector: DueSetSelector,
        ranker: ClueRanker | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._selector = selector
        self._ranker = ranker or ClueRanker()
        self._clock = clock or local_now
        self._reset()

    def _reset(self) -> None:
        self._scope: DueScope | None = None
        self._queue: tuple[str, ...] = ()
        self._cursor = 0
        self._active = False
        self._pending_hints = 0
        self._handle: SessionHandle | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        if not self._active:
            return SessionState.IDLE
        if self._cursor >= len(self._queue):
            return SessionState.COMPLETE
        return SessionState.ACTIVE

    @property
    def handle(self) -> SessionHandle | None:
        return self._handle

    @property
    def position(self) -> tuple[int, int]:
        """(cards answered so far, cards in the snapshot)."""
        return min(self._cursor, len(self._queue)), len(self._queue)

    @property
    def remaining(self) -> tuple[str, ...]:
        return self._queue[self._cursor :] if self._active else ()

    def current_card(self) -> Card | None:
        """Card under the cursor, skipping cards deleted since the snapshot."""
        while self._active and self._cursor < len(self._queue):
            card = self._store.get_card(self._queue[self._cursor])
            if card is not None:
                return card
            logger.debug(f"Skipping deleted card {self._queue[self._cursor]}")
            self._cursor += 1
        return None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _open_session(self) -> StudySession:
        scope = self._scope or AllDue()
        return self._store.open_session(session_deck_id(scope), scope=scope.key)

    def start(self, scope: DueScope | None = None) -> SessionHandle:
        """
        Snapshot the due set for `scope` and open a study session.

        Starting the scope that is already running returns the existing
        handle. An open session for a different scope is abandoned first,
        even when the new scope has nothing due. An empty due set leaves the
        controller IDLE.
        """
        scope = scope or AllDue()
        current = self._store.current_session
        same_scope = current is not None and current.scope == scope.key

        if self._active and self._scope == scope and same_scope and self._handle:
            return self._handle

        if current is not None and not same_scope:
            logger.info(f"Abandoning open session {current.id} for scope {scope.key}")
            self._store.abandon_session()
            current = None

        cards = self._selector.list_due_cards(scope)
        self._reset()
        self._scope = scope
        self._queue = tuple(c.id for c in cards)

        if not cards:
            logger.info(f"Nothing due for {scope.key}")
            self._handle = SessionHandle(scope=scope, card_ids=(), session_id=None)
            return self._handle

        session = current or self._open_session()
        self._active = True
        self._handle = SessionHandle(scope=scope, card_ids=self._queue, session_id=session.id)
        logger.info(f"Started session {session.id}: {len(self._queue)} cards ({scope.key})")
        return self._handle

    def submit_review(
        self,
        card_id: str,
        was_correct: bool,
        elapsed_ms: int = 0,
        hints_used: int = 0,
        clues_shown: int = 0,
    ) -> Card | None:
        """
        Record one answer.

        Unknown card ids are ignored and return None. Opens a session if
        none is open, so a review outside a started run is still counted.
        The cursor only advances when `card_id` is the card under it; a
        repeated or out-of-queue answer is recorded without skipping ahead.

        Args:
            card_id: Card being answered.
            was_correct: Whether the answer was right.
            elapsed_ms: Time spent on the card.
            hints_used: Explicit hint interactions for this card.
            clues_shown: Clues visible when answering; counted as hints.

        Returns:
            The updated card snapshot, or None for an unknown card.
        """
        if self._store.get_card(card_id) is None:
            logger.debug(f"submit_review: unknown card {card_id}")
            return None

        if self._store.current_session is None:
            self._open_session()

        # Only the card under the cursor moves the run forward
        under_cursor = self.current_card()
        advances = under_cursor is not None and under_cursor.id == card_id

        now = self._clock()
        updated = self._store.record_review(
            card_id,
            lambda card: advance(card, was_correct, now),
            was_correct,
            hints_used=hints_used + clues_shown + self._pending_hints,
            elapsed_ms=elapsed_ms,
            now=now,
        )
        if updated is None:
            return None

        self._pending_hints = 0
        if advances:
            self._cursor += 1

        logger.debug(
            f"Reviewed {card_id}: correct={was_correct} box={updated.box_level} "
            f"next={updated.next_review_at.isoformat()}"
        )
        return updated

    def restart(self) -> SessionHandle | None:
        """Replay the same snapshot from the top with zeroed session counters."""
        if not self._queue or self._scope is None:
            return None
        self._cursor = 0
        self._pending_hints = 0
        self._active = True
        session = self._store.reset_session_counters()
        if session is None:
            session = self._open_session()
        self._handle = SessionHandle(
            scope=self._scope, card_ids=self._queue, session_id=session.id
        )
        return self._handle

    def end(self) -> StudySession | None:
        """Finalize the open session into history and return it."""
        finished = self._store.finalize_session()
        if finished is not None:
            logger.info(
                f"Ended session {finished.id}: {finished.correct_answers}/"
                f"{finished.cards_reviewed} correct, {finished.hints_used} hints"
            )
        self._reset()
        return finished

    def abandon(self) -> StudySession | None:
        """Discard the open session without adding it to history."""
        dropped = self._store.abandon_session()
        self._reset()
        return dropped

    # ------------------------------------------------------------------
    # Hints and clues
    # ------------------------------------------------------------------

    def use_hint(self) -> int:
        self._pending_hints += 1
        return self._pending_hints

    def clues(self, card: Card | None = None) -> Sequence[Clue]:
        card = card or self.current_card()
        if card is None:
            return []
        return self._ranker.rank_clues(
            card,
            self._store.get_deck(card.deck_id),
            self._store.cards,
            self._store.decks,
        )

    def record_clue_feedback(self, clue_id: str, helpful: bool, card_id: str | None = None):
        """Log clue feedback. A helpful vote counts as a hint for the current card."""
        if card_id is None:
            card = self.current_card()
            if card is None:
                return
            card_id = card.id
        record_clue_feedback(card_id, clue_id, helpful)
        if helpful:
            self._pending_hints += 1
