"""
JSON Snapshot Repository: Infrastructure adapter for a local JSON file.

Implements SnapshotRepository by keeping the whole store under one
namespaced key:

    {"colonymind-storage": {"state": {...}, "version": 1}}

Other keys in the same file are preserved on save.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from mindcolony.domain.constants import STORAGE_KEY, STORAGE_VERSION
from mindcolony.domain.ports import SnapshotRepository, StoreSnapshot

logger = logging.getLogger(__name__)

_snapshot_adapter = TypeAdapter(StoreSnapshot)


def dump_snapshot(snapshot: StoreSnapshot) -> dict[str, Any]:
    return _snapshot_adapter.dump_python(snapshot, mode="json")


def load_snapshot(data: dict[str, Any]) -> StoreSnapshot:
    return _snapshot_adapter.validate_python(data)


class JsonSnapshotRepository(SnapshotRepository):
    """
    Stores snapshots in a JSON file, replacing it atomically on each save.
    """

    def __init__(self, path: Path, storage_key: str = STORAGE_KEY):
        self.path = path
        self.storage_key = storage_key

    def _read_file(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store file {self.path}: top level is not an object")
            return {}
        return data

    def load(self) -> StoreSnapshot | None:
        blob = self._read_file().get(self.storage_key)
        if not isinstance(blob, dict) or "state" not in blob:
            return None

        version = blob.get("version", STORAGE_VERSION)
        if version != STORAGE_VERSION:
            logger.warning(
                f"Store version {version} differs from {STORAGE_VERSION}; loading anyway"
            )

        try:
            return load_snapshot(blob["state"])
        except ValidationError as e:
            logger.warning(f"Ignoring invalid store snapshot in {self.path}: {e}")
            return None

    def save(self, snapshot: StoreSnapshot) -> None:
        data = self._read_file()
        data[self.storage_key] = {"state": dump_snapshot(snapshot), "version": STORAGE_VERSION}

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)
        logger.debug(f"Saved store snapshot to {self.path}")
