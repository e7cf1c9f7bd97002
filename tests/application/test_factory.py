from zoneinfo import ZoneInfo

from mindcolony.application.config import AppConfig
from mindcolony.application.factory import (
    create_store,
    create_study_service,
    get_snapshot_repository,
)
from mindcolony.application.seed import SAMPLE_CARDS, seed_store
from mindcolony.infrastructure.persistence import (
    InMemorySnapshotRepository,
    JsonSnapshotRepository,
)


def _config(tmp_path, **kwargs):
    return AppConfig(data_path=tmp_path / "store.json", log_dir=tmp_path / "logs", **kwargs)


def test_repository_selection(tmp_path, mock_home):
    assert isinstance(get_snapshot_repository(_config(tmp_path)), JsonSnapshotRepository)
    assert isinstance(
        get_snapshot_repository(_config(tmp_path, backend="memory")), InMemorySnapshotRepository
    )


def test_new_store_is_seeded(tmp_path, mock_home, clock):
    store = create_store(_config(tmp_path), clock=clock)

    assert [d.name for d in store.decks] == ["Spanish Basics", "JavaScript Fundamentals"]
    assert len(store.cards) == len(SAMPLE_CARDS)
    assert store.get_deck("deck-1").card_count == 5
    assert store.get_deck("deck-2").card_count == 4
    assert (tmp_path / "store.json").exists()


def test_seeding_can_be_disabled(tmp_path, mock_home, clock):
    store = create_store(_config(tmp_path, seed_samples=False), clock=clock)
    assert store.decks == ()


def test_existing_store_is_reloaded_not_reseeded(tmp_path, mock_home, clock):
    config = _config(tmp_path)
    first = create_store(config, clock=clock)
    first.delete_deck("deck-2")

    second = create_store(config, clock=clock)

    assert [d.id for d in second.decks] == ["deck-1"]
    assert second.snapshot() == first.snapshot()


def test_seed_store_skips_non_empty_store(store, deck, clock):
    assert seed_store(store, clock()) == 0
    assert len(store.decks) == 1


def test_study_service_wiring(tmp_path, mock_home, clock):
    service = create_study_service(
        _config(tmp_path, backend="memory", clue_display_limit=2, random_seed=1), clock=clock
    )

    assert service.clue_display_limit == 2
    assert len(service.list_due_cards()) == len(SAMPLE_CARDS)
    assert len(service.clues_for("card-1")) == 2


def test_configured_timezone_drives_the_clock(tmp_path, mock_home):
    service = create_study_service(
        _config(tmp_path, backend="memory", seed_samples=False, timezone="Europe/Berlin")
    )

    now = service.clock()
    assert now.tzinfo == ZoneInfo("Europe/Berlin")
    assert service.store.add_deck("Deck").created_at.tzinfo == ZoneInfo("Europe/Berlin")
