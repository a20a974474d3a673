"""Local filesystem template source."""

from __future__ import annotations

from pathlib import Path

from registry.errors import SourceUnavailableError
from registry.sources.base import SourceAdapter
from schemas.registry import LocalSource


class LocalSourceAdapter(SourceAdapter):
    """Serves templates straight from a directory on disk.

    Templates are used in place; nothing is copied into the cache directory.
    """

    source_type = "local"

    async def materialize(self, source: LocalSource) -> Path:
        path = Path(source.path).expanduser()
        if not path.exists():
            raise SourceUnavailableError(f"Template directory not found: {path}", path=str(path))
        if not path.is_dir():
            raise SourceUnavailableError(f"Template path is not a directory: {path}", path=str(path))
        return path.resolve()
