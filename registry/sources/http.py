"""HTTP archive template source."""

from __future__ import annotations

import asyncio
import hashlib
import logging
from pathlib import Path
from typing import Any

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
from schemas.registry import HttpAuth, HttpSource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
USER_AGENT = "projgen-template-registry/0.1"


async def _get(
    url: str,
    auth: HttpAuth | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Response:
    """GET ``url`` and translate transport failures into SourceUnavailableError."""
    headers = {"User-Agent": USER_AGENT}
    basic: httpx.BasicAuth | None = None
    if auth and auth.bearer_token:
        headers["Authorization"] = f"Bearer {auth.bearer_token}"
    elif auth and auth.basic_auth:
        basic = httpx.BasicAuth(*auth.basic_auth)

    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers=headers,
            auth=basic,
            transport=transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status in (401, 403):
            raise SourceUnavailableError(
                f"Authentication failed for {url} (HTTP {status})", url=url, status_code=status
            )
        raise SourceUnavailableError(f"HTTP {status} from {url}", url=url, status_code=status)
    except httpx.RequestError as e:
        raise SourceUnavailableError(f"Connection error for {url}: {e}", url=url)


async def download(
    url: str,
    auth: HttpAuth | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """Download ``url`` and return the response body."""
    response = await _get(url, auth=auth, transport=transport, timeout=timeout)
    return response.content


async def fetch_json(
    url: str,
    auth: HttpAuth | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """Fetch a JSON object from ``url``."""
    response = await _get(url, auth=auth, transport=transport, timeout=timeout)
    try:
        data = response.json()
    except ValueError as e:
        raise SourceUnavailableError(f"Invalid JSON from {url}: {e}", url=url)
    if not isinstance(data, dict):
        raise SourceUnavailableError(f"Expected a JSON object from {url}", url=url)
    return data


class HttpSourceAdapter(SourceAdapter):
    """Download template archives (tar or zip) over HTTP.

    When the source declares a checksum, an extraction recorded with the
    same checksum is reused; otherwise the archive is downloaded again on
    every fetch so the content is never older than what the URL serves.
    """

    source_type = "http"

    def __init__(
        self,
        cache_dir: Path,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the adapter.

        Args:
            cache_dir: Root cache directory; extractions go under ``http/``.
            transport: Optional httpx transport (used by tests).
            timeout: Request timeout in seconds.
        """
        self.cache_dir = Path(cache_dir)
        self.transport = transport
        self.timeout = timeout

    def extract_dir(self, source: HttpSource) -> Path:
        return self.cache_dir / "http" / source_digest(source.url, source.checksum)

    async def materialize(self, source: HttpSource) -> Path:
        target = self.extract_dir(source)
        expected = normalize_checksum(source.checksum) if source.checksum else None

        if expected:
            marker = read_marker(target)
            if marker and marker.get("checksum") == expected:
                logger.debug("Reusing extracted archive for %s", source.url)
                return archive_root(target)

        logger.debug("Downloading template archive %s", source.url)
        content = await download(
            source.url, auth=source.auth, transport=self.transport, timeout=self.timeout
        )

        if source.checksum:
            verify_checksum(content, source.checksum, source=source.url)

        marker_data = {
            "url": source.url,
            "checksum": expected or f"sha256:{hashlib.sha256(content).hexdigest()}",
        }
        await asyncio.to_thread(extract_archive, content, target, marker_data)
        return archive_root(target)
