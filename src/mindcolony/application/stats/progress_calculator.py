"""
Progress calculator for dashboard and progress reports.

This is a pure computation module with no I/O.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from mindcolony.application.due_selector import cards_due_today
from mindcolony.application.utils.time import same_day
from mindcolony.domain.constants import MASTERED_BOX_LEVEL, MAX_BOX_LEVEL, MIN_BOX_LEVEL
from mindcolony.domain.models import Card, DailyStats, Deck, Difficulty, StudySession


def percent(part: int, whole: int) -> int:
    """Rounded percentage, 0 when there is nothing to divide by."""
    if whole <= 0:
        return 0
    return round(part / whole * 100)


@dataclass
class DeckProgress:
    deck_id: str
    name: str
    total: int
    mastered: int
    progress: int  # percent mastered


@dataclass
class ProgressReport:
    """
    Aggregated study progress at a point in time.
    """

    total_cards: int
    mastered_cards: int  # box >= 4
    mastery_rate: int  # percent
    total_reviews: int
    overall_accuracy: int  # percent
    due_today: int

    # Today (sessions started on the report's calendar day)
    today_cards_reviewed: int
    today_correct: int
    today_accuracy: int

    current_streak: int

    difficulty_breakdown: dict[str, int] = field(default_factory=dict)
    box_counts: dict[int, int] = field(default_factory=dict)
    decks: list[DeckProgress] = field(default_factory=list)


class ProgressCalculator:
    """
    Computes progress metrics from store records.

    Stateless and side-effect free.
    """

    def report(
        self,
        cards: Sequence[Card],
        decks: Sequence[Deck],
        sessions: Sequence[StudySession],
        daily_stats: Sequence[DailyStats],
        now: datetime,
        current_session: StudySession | None = None,
    ) -> ProgressReport:
        total = len(cards)
        mastered = sum(1 for c in cards if c.box_level >= MASTERED_BOX_LEVEL)
        total_reviews = sum(c.review_count for c in cards)
        total_correct = sum(c.correct_count for c in cards)

        today_sessions = [s for s in sessions if same_day(s.started_at, now)]
        if current_session is not None and same_day(current_session.started_at, now):
            today_sessions.append(current_session)
        today_reviewed = sum(s.cards_reviewed for s in today_sessions)
        today_correct = sum(s.correct_answers for s in today_sessions)

        return ProgressReport(
            total_cards=total,
            mastered_cards=mastered,
            mastery_rate=percent(mastered, total),
            total_reviews=total_reviews,
            overall_accuracy=percent(total_correct, total_reviews),
            due_today=len(cards_due_today(cards, now)),
            today_cards_reviewed=today_reviewed,
            today_correct=today_correct,
            today_accuracy=percent(today_correct, today_reviewed),
            current_streak=self._current_streak(daily_stats, now),
            difficulty_breakdown=self._difficulty_breakdown(cards),
            box_counts=self._box_counts(cards),
            decks=[self._deck_progress(deck, cards) for deck in decks],
        )

    def _difficulty_breakdown(self, cards: Sequence[Card]) -> dict[str, int]:
        breakdown = {d.value: 0 for d in Difficulty}
        for card in cards:
            breakdown[Difficulty(card.difficulty).value] += 1
        return breakdown

    def _box_counts(self, cards: Sequence[Card]) -> dict[int, int]:
        counts = {level: 0 for level in range(MIN_BOX_LEVEL, MAX_BOX_LEVEL + 1)}
        for card in cards:
            if card.box_level in counts:
                counts[card.box_level] += 1
        return counts

    def _deck_progress(self, deck: Deck, cards: Sequence[Card]) -> DeckProgress:
        deck_cards = [c for c in cards if c.deck_id == deck.id]
        mastered = sum(1 for c in deck_cards if c.box_level >= MASTERED_BOX_LEVEL)
        return DeckProgress(
            deck_id=deck.id,
            name=deck.name,
            total=len(deck_cards),
            mastered=mastered,
            progress=percent(mastered, len(deck_cards)),
        )

    def _current_streak(self, daily_stats: Sequence[DailyStats], now: datetime) -> int:
        """
        Streak still alive at `now`: today's entry, else yesterday's, else 0.
        """
        by_date = {s.date: s for s in daily_stats}
        for day in (now.date(), now.date() - timedelta(days=1)):
            entry = by_date.get(day.isoformat())
            if entry is not None:
                return entry.streak
        return 0
