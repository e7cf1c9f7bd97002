"""
Ports (interfaces) for persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .models import Card, DailyStats, Deck, StudySession


@dataclass(frozen=True)
class StoreSnapshot:
    """Everything the store persists, in insertion order."""

    cards: tuple[Card, ...] = ()
    decks: tuple[Deck, ...] = ()
    sessions: tuple[StudySession, ...] = ()
    daily_stats: tuple[DailyStats, ...] = field(default_factory=tuple)
    current_session: StudySession | None = None


class SnapshotRepository(ABC):
    """
    Port for durable snapshots of the card store.

    Implementations:
        - JsonSnapshotRepository: A namespaced JSON blob on disk.
        - InMemorySnapshotRepository: Keeps the last snapshot in memory.
    """

    @abstractmethod
    def load(self) -> StoreSnapshot | None:
        """
        Return the latest committed snapshot, or None if nothing was saved yet.
        """
        pass

    @abstractmethod
    def save(self, snapshot: StoreSnapshot) -> None:
        """
        Persist a snapshot, replacing the previous one.
        """
        pass
