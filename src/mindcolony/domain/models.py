"""
Domain models for flashcards, decks and study sessions.

These are pure data structures with no I/O or external dependencies.
Records are frozen: every change produces a new record that replaces
the old one as a whole.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .constants import ALL_DECKS


class Difficulty(str, Enum):
    NEW = "new"
    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"
    MASTERED = "mastered"


class ClueType(str, Enum):
    """Clue generator categories, in declaration (tie-break) order."""

    GRAPH = "graph"
    SEMANTIC = "semantic"
    RAG = "rag"
    DIFFICULTY = "difficulty"
    BOX = "box"
    CLUSTER = "cluster"


@dataclass(frozen=True)
class Card:
    """
    A unit of knowledge.

    Attributes:
        box_level: Leitner box (1-5). 1 is reviewed most often.
        next_review_at: When the card is next due.
        review_count: Total answers recorded. Never decreases.
        correct_count: Correct answers recorded (<= review_count).
    """

    id: str
    front: str
    back: str
    deck_id: str
    next_review_at: datetime
    created_at: datetime
    box_level: int = 1
    difficulty: Difficulty = Difficulty.NEW
    review_count: int = 0
    correct_count: int = 0
    hints: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    @property
    def accuracy(self) -> float | None:
        """Share of correct answers, or None if never reviewed."""
        if self.review_count == 0:
            return None
        return self.correct_count / self.review_count


@dataclass(frozen=True)
class Deck:
    id: str
    name: str
    created_at: datetime
    description: str = ""
    color: str = "#3B82F6"
    card_count: int = 0  # Cached; kept equal to the number of live cards
    last_studied: datetime | None = None


@dataclass(frozen=True)
class StudySession:
    """
    A record of one study run.

    `deck_id` is either a deck id or ALL_DECKS for sessions that are not
    scoped to a single deck. `scope` is the key of the due scope the session
    was started for ("all", "box:<n>" or a deck id).
    """

    id: str
    started_at: datetime
    deck_id: str = ALL_DECKS
    scope: str = ALL_DECKS
    ended_at: datetime | None = None
    cards_reviewed: int = 0
    correct_answers: int = 0
    hints_used: int = 0

    @property
    def accuracy(self) -> float:
        if self.cards_reviewed == 0:
            return 0.0
        return self.correct_answers / self.cards_reviewed


@dataclass(frozen=True)
class DailyStats:
    """
    Review totals for one local calendar day.

    Attributes:
        date: ISO date (YYYY-MM-DD).
        streak: Consecutive study days ending at this date.
    """

    date: str
    cards_reviewed: int = 0
    correct_answers: int = 0
    time_spent_ms: int = 0
    streak: int = 1

    @property
    def correct_rate(self) -> float:
        if self.cards_reviewed == 0:
            return 0.0
        return self.correct_answers / self.cards_reviewed


@dataclass(frozen=True)
class Clue:
    """An advisory hint shown during study. Never persisted."""

    id: str
    text: str
    type: ClueType
    weight: float
    expanded: str | None = None


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of scheduling a single answer."""

    box_level: int
    difficulty: Difficulty
    next_review_at: datetime


# ---------- Due-set scopes ----------


@dataclass(frozen=True)
class AllDue:
    """Every card due by the end of today."""

    @property
    def key(self) -> str:
        return ALL_DECKS


@dataclass(frozen=True)
class ByBox:
    """Every card in one box, regardless of due time."""

    level: int

    @property
    def key(self) -> str:
        return f"box:{self.level}"


@dataclass(frozen=True)
class ByDeck:
    """Cards of one deck that are due right now."""

    deck_id: str

    @property
    def key(self) -> str:
        return self.deck_id


DueScope = AllDue | ByBox | ByDeck
