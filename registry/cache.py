"""Time-based cache of resolved templates.

Maps ``"{project_type}:{template_name}"`` keys to a resolved on-disk template
and the time it was resolved. Staleness is evaluated lazily on read; there is
no background eviction. When an index path is given the cache is mirrored to
a JSON file so resolutions survive process restarts.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from schemas.template import TemplateMetadata

logger = logging.getLogger(__name__)

INDEX_VERSION = 1


def cache_key(project_type: str, template_name: str) -> str:
    """Build the composite cache key for a template."""
    return f"{project_type}:{template_name}"


@dataclass(frozen=True)
class CacheEntry:
    """A fully resolved template held by the cache store."""

    metadata: TemplateMetadata
    resolved_path: Path
    cached_at: float
    registry_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.model_dump(mode="json", by_alias=True),
            "resolved_path": str(self.resolved_path),
            "cached_at": self.cached_at,
            "registry_name": self.registry_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        return cls(
            metadata=TemplateMetadata.model_validate(data["metadata"]),
            resolved_path=Path(data["resolved_path"]),
            cached_at=float(data["cached_at"]),
            registry_name=data.get("registry_name"),
        )


class CacheStore:
    """Keyed store of resolved templates with a time-to-live.

    Example:
        >>> store = CacheStore(ttl_seconds=3600)
        >>> store.put("vue:basic", CacheEntry(metadata, path, store.now()))
        >>> store.get("vue:basic")
    """

    def __init__(
        self,
        ttl_seconds: int,
        index_path: Path | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache store.

        Args:
            ttl_seconds: Maximum age in seconds of a valid entry.
            index_path: Optional JSON file used to persist entries.
            clock: Source of the current time in seconds.
        """
        self.ttl_seconds = ttl_seconds
        self.index_path = Path(index_path) if index_path else None
        self._clock = clock
        self._entries: dict[str, CacheEntry] = (
            self._load(self.index_path) if self.index_path else {}
        )

    def now(self) -> float:
        return self._clock()

    def is_expired(self, entry: CacheEntry) -> bool:
        """Check whether an entry is older than the TTL.

        A clock that reads earlier than ``cached_at`` is treated as expired.
        """
        try:
            elapsed = self._clock() - entry.cached_at
        except OSError:
            return True
        if elapsed < 0:
            return True
        return elapsed > self.ttl_seconds

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` unless it is absent or stale."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.is_expired(entry):
            logger.debug("Cache entry for %s expired", key)
            return None
        if not entry.resolved_path.exists():
            logger.debug("Cached path for %s no longer exists: %s", key, entry.resolved_path)
            return None
        return entry

    def put(self, key: str, entry: CacheEntry) -> None:
        """Store ``entry`` under ``key``, replacing any previous entry."""
        self._entries[key] = entry
        self._save()

    def invalidate(self, key: str) -> bool:
        """Drop the entry for ``key``. Returns True if one existed."""
        if self._entries.pop(key, None) is None:
            return False
        self._save()
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._save()

    def entries(self) -> dict[str, CacheEntry]:
        """Snapshot of all entries, including stale ones."""
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def _load(self, index_path: Path) -> dict[str, CacheEntry]:
        """Load entries from the index file."""
        if not index_path.exists():
            return {}

        try:
            data = json.loads(index_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable cache index %s: %s", index_path, e)
            return {}

        if not isinstance(data, dict) or data.get("version") != INDEX_VERSION:
            logger.warning("Ignoring cache index with unknown format: %s", index_path)
            return {}

        entries: dict[str, CacheEntry] = {}
        for key, raw in data.get("entries", {}).items():
            try:
                entries[key] = CacheEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                logger.warning("Dropping malformed cache entry %s: %s", key, e)
        return entries

    def _save(self) -> None:
        """Write the index file atomically."""
        if self.index_path is None:
            return

        payload = {
            "version": INDEX_VERSION,
            "entries": {key: entry.to_dict() for key, entry in self._entries.items()},
        }

        try:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.index_path.parent, prefix=".index-", suffix=".json"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, self.index_path)
        except OSError as e:
            # The in-memory entry is still authoritative for this process
            logger.warning("Failed to persist cache index %s: %s", self.index_path, e)
