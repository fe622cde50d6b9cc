"""Build state store -- stable "last updated" timestamps for generated feeds.

Feeds and indexes want a lastBuildDate that only moves when their content
actually changes, otherwise every site build produces a diff. Callers are
handed a store explicitly; nothing here touches the filesystem unless a
JsonBuildStateStore is the store they were given.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from loguru import logger

from .errors import BuildStateError
from .sanitize import content_hash

log = logger.bind(stage="build-state")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass(frozen=True)
class BuildStateEntry:
    content_hash: str
    last_update: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "content_hash": self.content_hash,
            "last_update": self.last_update.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> BuildStateEntry:
        return cls(
            content_hash=data["content_hash"],
            last_update=datetime.fromisoformat(data["last_update"]),
        )


class BuildStateStore(Protocol):
    def get(self, key: str) -> BuildStateEntry | None: ...

    def put(self, key: str, entry: BuildStateEntry) -> None: ...


class MemoryBuildStateStore:
    """In-process store, used by tests and one-off builds."""

    def __init__(self) -> None:
        self._entries: dict[str, BuildStateEntry] = {}

    def get(self, key: str) -> BuildStateEntry | None:
        return self._entries.get(key)

    def put(self, key: str, entry: BuildStateEntry) -> None:
        self._entries[key] = entry


class JsonBuildStateStore:
    """Store backed by a single JSON file, written atomically."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read_all(self) -> dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            log.error(f"Failed to read build state {self.path}: {exc}")
            raise BuildStateError(f"Failed to read build state {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise BuildStateError(f"Build state {self.path} is not a JSON object")
        return data

    def _atomic_write(self, data: dict[str, dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            # Clean up temp file on any failure
            try:
                os.unlink(tmp_path)
            except OSError as cleanup_err:
                log.warning(f"Failed to cleanup temp file {tmp_path}: {cleanup_err}")
            raise

    def get(self, key: str) -> BuildStateEntry | None:
        raw = self._read_all().get(key)
        if raw is None:
            return None
        try:
            return BuildStateEntry.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise BuildStateError(f"Bad build state entry {key!r}: {exc}") from exc

    def put(self, key: str, entry: BuildStateEntry) -> None:
        data = self._read_all()
        data[key] = entry.to_dict()
        log.debug(f"Writing build state {key} hash={entry.content_hash[:12]}")
        self._atomic_write(data)


def stable_last_modified(
    store: BuildStateStore,
    key: str,
    content: str,
    now: datetime | None = None,
) -> datetime:
    """Timestamp of the last time ``content`` changed under ``key``.

    Unchanged content returns the stored timestamp without writing.
    New or changed content records ``now`` and returns it.
    """
    digest = content_hash(content)
    entry = store.get(key)
    if entry is not None and entry.content_hash == digest:
        return entry.last_update

    stamp = now or _utcnow()
    store.put(key, BuildStateEntry(content_hash=digest, last_update=stamp))
    log.info(f"{key} content changed, last update -> {stamp.isoformat()}")
    return stamp
