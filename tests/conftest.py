import random
from datetime import datetime, timedelta, timezone

import pytest

from mindcolony.application.clues import ClueRanker
from mindcolony.application.store import CardStore
from mindcolony.application.study_service import StudyService
from mindcolony.domain.models import Card, Deck, Difficulty
from mindcolony.infrastructure.persistence import InMemorySnapshotRepository

NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def repo():
    return InMemorySnapshotRepository()


@pytest.fixture
def store(repo, clock):
    return CardStore(repository=repo, clock=clock)


@pytest.fixture
def deck(store):
    return store.add_deck("Spanish Basics", description="Essential Spanish vocabulary")


@pytest.fixture
def service(store, clock):
    return StudyService(store, ranker=ClueRanker(rng=random.Random(42)), clock=clock)


@pytest.fixture
def make_card():
    """Build a Card value directly, bypassing the store."""
    counter = iter(range(1, 10_000))

    def _make(
        deck_id: str = "deck-1",
        box_level: int = 1,
        difficulty: Difficulty = Difficulty.NEW,
        review_count: int = 0,
        correct_count: int = 0,
        next_review_at: datetime = NOW,
        front: str | None = None,
        **kwargs,
    ) -> Card:
        n = next(counter)
        return Card(
            id=kwargs.pop("id", f"card-{n}"),
            front=front or f"Front {n}",
            back=f"Back {n}",
            deck_id=deck_id,
            box_level=box_level,
            difficulty=difficulty,
            review_count=review_count,
            correct_count=correct_count,
            next_review_at=next_review_at,
            created_at=NOW,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_deck():
    def _make(deck_id: str = "deck-1", name: str = "Deck") -> Deck:
        return Deck(id=deck_id, name=name, created_at=NOW)

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home
