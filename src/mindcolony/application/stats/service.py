"""
Progress Service: Application layer orchestrator.

Reads a consistent snapshot from the card store and hands it to the calculator.
"""

import logging

from mindcolony.application.store import CardStore
from mindcolony.application.utils.time import Clock, local_now
from mindcolony.domain.models import DailyStats

from .progress_calculator import ProgressCalculator, ProgressReport

logger = logging.getLogger(__name__)


class ProgressService:
    """
    Application service for progress reporting.

    Depends on the store's snapshot, never on its internals.
    """

    def __init__(
        self,
        store: CardStore,
        calculator: ProgressCalculator | None = None,
        clock: Clock | None = None,
    ):
        """
        Args:
            store: The card store to report on.
            calculator: Optional custom calculator; uses default if not provided.
            clock: Time source deciding what "today" is.
        """
        self._store = store
        self._calc = calculator or ProgressCalculator()
        self._clock = clock or local_now

    def get_report(self) -> ProgressReport:
        state = self._store.snapshot()
        return self._calc.report(
            cards=state.cards,
            decks=state.decks,
            sessions=state.sessions,
            daily_stats=state.daily_stats,
            now=self._clock(),
            current_session=state.current_session,
        )

    def get_daily_stats(self, days: int | None = None) -> list[DailyStats]:
        """
        Daily records, most recent last.

        Args:
            days: Only return the last N records when set.
        """
        stats = sorted(self._store.daily_stats, key=lambda s: s.date)
        if days is not None:
            stats = stats[-days:] if days > 0 else []
        return stats
