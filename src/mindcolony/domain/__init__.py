# Domain Package
from .models import (
    AllDue,
    ByBox,
    ByDeck,
    Card,
    Clue,
    ClueType,
    DailyStats,
    Deck,
    Difficulty,
    DueScope,
    ScheduleResult,
    StudySession,
)
from .ports import SnapshotRepository, StoreSnapshot

__all__ = [
    "AllDue",
    "ByBox",
    "ByDeck",
    "Card",
    "Clue",
    "ClueType",
    "DailyStats",
    "Deck",
    "Difficulty",
    "DueScope",
    "ScheduleResult",
    "SnapshotRepository",
    "StoreSnapshot",
    "StudySession",
]
