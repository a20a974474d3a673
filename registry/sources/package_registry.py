"""Package registry (npm-compatible) template source.

Resolves ``package@version`` against the registry's metadata API, downloads
the published tarball and verifies it against the registry's integrity hash.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

import httpx

from registry.errors import SourceUnavailableError
from registry.sources.archive import (
    archive_root,
    extract_archive,
    normalize_checksum,
    read_marker,
    verify_checksum,
)
from registry.sources.base import SourceAdapter, source_digest
from registry.sources.http import DEFAULT_TIMEOUT, download, fetch_json
from schemas.registry import PackageRegistrySource

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"


@dataclass
class PackageArtifact:
    """A concrete package version as published on the registry."""

    name: str
    version: str
    tarball_url: str
    integrity: str | None = None


class PackageRegistrySourceAdapter(SourceAdapter):
    """Install templates published as packages.

    The extracted package root (``package/`` in npm tarballs) is the
    template root.
    """

    source_type = "npm"

    def __init__(
        self,
        cache_dir: Path,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        default_registry: str = DEFAULT_REGISTRY_URL,
    ):
        self.cache_dir = Path(cache_dir)
        self.transport = transport
        self.timeout = timeout
        self.default_registry = default_registry

    def registry_url(self, source: PackageRegistrySource) -> str:
        return (source.registry_url or self.default_registry).rstrip("/")

    def metadata_url(self, source: PackageRegistrySource) -> str:
        """Registry URL describing ``package@version`` (scoped names encoded)."""
        package = quote(source.package, safe="@")
        version = quote(source.version, safe="")
        return f"{self.registry_url(source)}/{package}/{version}"

    async def resolve_package(self, source: PackageRegistrySource) -> PackageArtifact:
        """Look up the tarball and integrity hash for ``package@version``."""
        data = await fetch_json(self.metadata_url(source), transport=self.transport, timeout=self.timeout)

        dist = data.get("dist")
        if not isinstance(dist, dict) or not dist.get("tarball"):
            raise SourceUnavailableError(
                f"Registry response for {source.package}@{source.version} has no tarball",
                package=source.package,
            )

        integrity = dist.get("integrity")
        if not integrity and dist.get("shasum"):
            integrity = f"sha1:{dist['shasum']}"

        return PackageArtifact(
            name=str(data.get("name", source.package)),
            version=str(data.get("version", source.version)),
            tarball_url=dist["tarball"],
            integrity=integrity,
        )

    def extract_dir(self, source: PackageRegistrySource, artifact: PackageArtifact) -> Path:
        return self.cache_dir / "npm" / source_digest(
            self.registry_url(source), artifact.name, artifact.version
        )

    async def materialize(self, source: PackageRegistrySource) -> Path:
        artifact = await self.resolve_package(source)
        target = self.extract_dir(source, artifact)
        expected = normalize_checksum(artifact.integrity) if artifact.integrity else None

        if expected:
            marker = read_marker(target)
            if marker and marker.get("checksum") == expected:
                logger.debug("Reusing %s@%s from %s", artifact.name, artifact.version, target)
                return archive_root(target)

        logger.debug("Downloading %s@%s from %s", artifact.name, artifact.version, artifact.tarball_url)
        content = await download(artifact.tarball_url, transport=self.transport, timeout=self.timeout)

        if artifact.integrity:
            verify_checksum(content, artifact.integrity, source=f"{artifact.name}@{artifact.version}")

        marker_data = {
            "package": artifact.name,
            "version": artifact.version,
            "checksum": expected,
        }
        await asyncio.to_thread(extract_archive, content, target, marker_data)
        return archive_root(target)
