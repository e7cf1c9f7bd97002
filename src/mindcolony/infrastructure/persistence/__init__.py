# Persistence Adapters Package
from .json_snapshot import JsonSnapshotRepository
from .memory import InMemorySnapshotRepository

__all__ = ["InMemorySnapshotRepository", "JsonSnapshotRepository"]
