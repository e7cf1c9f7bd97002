from mindcolony.domain.ports import SnapshotRepository, StoreSnapshot


class InMemorySnapshotRepository(SnapshotRepository):
    """Keeps the last saved snapshot for the lifetime of the process."""

    def __init__(self, snapshot: StoreSnapshot | None = None):
        self._snapshot = snapshot
        self.save_count = 0

    def load(self) -> StoreSnapshot | None:
        return self._snapshot

    def save(self, snapshot: StoreSnapshot) -> None:
        self._snapshot = snapshot
        self.save_count += 1
