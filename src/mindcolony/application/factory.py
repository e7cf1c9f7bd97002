"""
Store Factory
Centralizes the logic for selecting the snapshot repository and wiring services.
"""

import logging
import random

from mindcolony.application.clues import ClueRanker
from mindcolony.application.config import AppConfig
from mindcolony.application.seed import seed_store
from mindcolony.application.store import CardStore
from mindcolony.application.study_service import StudyService
from mindcolony.application.utils.time import Clock, zone_clock
from mindcolony.domain.ports import SnapshotRepository
from mindcolony.infrastructure.persistence import (
    InMemorySnapshotRepository,
    JsonSnapshotRepository,
)

logger = logging.getLogger(__name__)


def get_snapshot_repository(config: AppConfig) -> SnapshotRepository:
    """
    Returns the SnapshotRepository implementation selected by config.
    """
    if config.backend == "memory":
        return InMemorySnapshotRepository()
    return JsonSnapshotRepository(path=config.data_path, storage_key=config.storage_key)


def create_store(config: AppConfig, clock: Clock | None = None) -> CardStore:
    """
    Load the store from its repository, seeding sample decks into a brand new one.
    """
    clock = clock or zone_clock(config.timezone)
    repo = get_snapshot_repository(config)
    snapshot = repo.load()
    store = CardStore(repository=repo, snapshot=snapshot, clock=clock)

    if snapshot is None and config.seed_samples:
        inserted = seed_store(store, clock())
        logger.info(f"Seeded new store with {inserted} sample cards")

    return store


def create_study_service(config: AppConfig, clock: Clock | None = None) -> StudyService:
    clock = clock or zone_clock(config.timezone)
    rng = random.Random(config.random_seed)
    return StudyService(
        create_store(config, clock=clock),
        ranker=ClueRanker(rng=rng),
        clock=clock,
        clue_display_limit=config.clue_display_limit,
    )
