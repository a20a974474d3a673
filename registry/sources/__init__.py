"""Template source adapters.

One adapter per source kind:
- local: directories on disk
- git: shallow clones of Git repositories
- http: tar/zip archives downloaded over HTTP
- npm: packages published on an npm-compatible registry
"""

from pathlib import Path

import httpx

from registry.sources.base import (
    DESCRIPTOR_FILES,
    SourceAdapter,
    discover_templates,
    find_template,
    load_metadata,
)
from registry.sources.git import GitSourceAdapter
from registry.sources.http import HttpSourceAdapter
from registry.sources.local import LocalSourceAdapter
from registry.sources.package_registry import DEFAULT_REGISTRY_URL, PackageRegistrySourceAdapter


def build_adapters(
    cache_dir: Path,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, SourceAdapter]:
    """Create the default adapter for every source kind, keyed by source type."""
    adapters: list[SourceAdapter] = [
        LocalSourceAdapter(),
        GitSourceAdapter(cache_dir),
        HttpSourceAdapter(cache_dir, transport=transport),
        PackageRegistrySourceAdapter(cache_dir, transport=transport),
    ]
    return {adapter.source_type: adapter for adapter in adapters}


__all__ = [
    "DEFAULT_REGISTRY_URL",
    "DESCRIPTOR_FILES",
    "GitSourceAdapter",
    "HttpSourceAdapter",
    "LocalSourceAdapter",
    "PackageRegistrySourceAdapter",
    "SourceAdapter",
    "build_adapters",
    "discover_templates",
    "find_template",
    "load_metadata",
]
