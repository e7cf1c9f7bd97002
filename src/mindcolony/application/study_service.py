"""
Study service: the entry point used by the CLI and the HTTP server.

Bundles the store, due-set selector, session controller, clue ranker and
progress reporting behind one object.
"""

import logging
from collections.abc import Sequence

from mindcolony.application.clues import ClueRanker, record_clue_feedback
from mindcolony.application.due_selector import DueSetSelector
from mindcolony.application.session import SessionController, SessionHandle, SessionState
from mindcolony.application.stats import ProgressReport, ProgressService
from mindcolony.application.store import CardStore
from mindcolony.application.utils.time import Clock, local_now
from mindcolony.domain.constants import DEFAULT_CLUE_DISPLAY_LIMIT
from mindcolony.domain.models import Card, Clue, Deck, DueScope, StudySession

logger = logging.getLogger(__name__)


class StudyService:
    def __init__(
        self,
        store: CardStore,
        ranker: ClueRanker | None = None,
        clock: Clock | None = None,
        clue_display_limit: int = DEFAULT_CLUE_DISPLAY_LIMIT,
    ):
        self.store = store
        self.clock = clock or local_now
        self.ranker = ranker or ClueRanker()
        self.selector = DueSetSelector(store, clock=self.clock)
        self.sessions = SessionController(store, self.selector, self.ranker, clock=self.clock)
        self.progress = ProgressService(store, clock=self.clock)
        self.clue_display_limit = clue_display_limit

    # ---------- Due set ----------

    def list_due_cards(self, scope: DueScope | None = None) -> list[Card]:
        return self.selector.list_due_cards(scope)

    # ---------- Sessions ----------

    @property
    def session_state(self) -> SessionState:
        return self.sessions.state

    def start_session(self, scope: DueScope | None = None) -> SessionHandle:
        return self.sessions.start(scope)

    def current_card(self) -> Card | None:
        return self.sessions.current_card()

    def submit_review(
        self,
        card_id: str,
        was_correct: bool,
        elapsed_ms: int = 0,
        hints_used: int = 0,
        clues_shown: int = 0,
    ) -> Card | None:
        return self.sessions.submit_review(
            card_id,
            was_correct,
            elapsed_ms=elapsed_ms,
            hints_used=hints_used,
            clues_shown=clues_shown,
        )

    def restart_session(self) -> SessionHandle | None:
        return self.sessions.restart()

    def end_session(self) -> StudySession | None:
        return self.sessions.end()

    def abandon_session(self) -> StudySession | None:
        return self.sessions.abandon()

    # ---------- Clues ----------

    def rank_clues(
        self,
        card: Card,
        deck: Deck | None = None,
        corpus: Sequence[Card] | None = None,
    ) -> list[Clue]:
        """Rank clues for `card`. Deck and corpus default to the store's."""
        if deck is None:
            deck = self.store.get_deck(card.deck_id)
        if corpus is None:
            corpus = self.store.cards
        return self.ranker.rank_clues(card, deck, corpus, self.store.decks)

    def clues_for(self, card_id: str, limit: int | None = None) -> list[Clue] | None:
        """
        Ranked clues for a stored card, capped to `limit` (config default).

        Returns None for an unknown card.
        """
        card = self.store.get_card(card_id)
        if card is None:
            return None
        clues = self.rank_clues(card)
        limit = self.clue_display_limit if limit is None else limit
        return clues[:limit] if limit > 0 else clues

    def record_clue_feedback(self, card_id: str, clue_id: str, helpful: bool) -> None:
        current = self.sessions.current_card()
        if current is not None and current.id == card_id:
            self.sessions.record_clue_feedback(clue_id, helpful, card_id=card_id)
        else:
            record_clue_feedback(card_id, clue_id, helpful)

    # ---------- Reporting ----------

    def progress_report(self) -> ProgressReport:
        return self.progress.get_report()
