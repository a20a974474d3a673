"""Checksum verification and archive extraction for downloaded templates."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import io
import json
import logging
import os
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Any

from registry.errors import ConfigurationError, IntegrityError, SourceUnavailableError

logger = logging.getLogger(__name__)

HASH_ALGORITHMS = ("sha1", "sha256", "sha384", "sha512")
DEFAULT_HASH_ALGORITHM = "sha256"

# Written next to the extracted files, inside the cache directory
MARKER_FILE = ".source.json"


def parse_checksum(expected: str) -> tuple[str, bytes]:
    """Parse a checksum into ``(algorithm, digest)``.

    Accepted forms:
        sha256:<hex>        explicit algorithm
        sha512-<base64>     subresource integrity, as used by npm
        <hex>               sha256

    Raises:
        ConfigurationError: If the checksum cannot be parsed.
    """
    value = expected.strip().split()[0] if expected.strip() else ""
    if not value:
        raise ConfigurationError("Checksum is empty")

    try:
        if ":" in value:
            algorithm, digest = value.split(":", 1)
            algorithm = algorithm.lower()
            raw = bytes.fromhex(digest)
        elif "-" in value and value.split("-", 1)[0].lower() in HASH_ALGORITHMS:
            algorithm, digest = value.split("-", 1)
            algorithm = algorithm.lower()
            raw = base64.b64decode(digest, validate=True)
        else:
            algorithm = DEFAULT_HASH_ALGORITHM
            raw = bytes.fromhex(value)
    except (ValueError, binascii.Error):
        raise ConfigurationError(f"Malformed checksum: {expected}", checksum=expected)

    if algorithm not in HASH_ALGORITHMS:
        raise ConfigurationError(
            f"Unsupported checksum algorithm: {algorithm}. Use one of: {', '.join(HASH_ALGORITHMS)}",
            checksum=expected,
        )
    if len(raw) != hashlib.new(algorithm).digest_size:
        raise ConfigurationError(f"Checksum has wrong length for {algorithm}: {expected}")
    return algorithm, raw


def normalize_checksum(expected: str) -> str:
    """Canonical ``algorithm:hex`` form of a checksum."""
    algorithm, raw = parse_checksum(expected)
    return f"{algorithm}:{raw.hex()}"


def verify_checksum(content: bytes, expected: str, source: str) -> None:
    """Check ``content`` against ``expected``.

    Raises:
        IntegrityError: On mismatch.
    """
    algorithm, raw = parse_checksum(expected)
    actual = hashlib.new(algorithm, content).digest()
    if not hmac.compare_digest(actual, raw):
        raise IntegrityError(
            f"Checksum mismatch for {source}. The download may be corrupted.",
            expected=f"{algorithm}:{raw.hex()}",
            actual=f"{algorithm}:{actual.hex()}",
            source=source,
        )


def read_marker(target: Path) -> dict[str, Any] | None:
    """Read the marker recorded for an extracted archive, if any."""
    marker_path = target / MARKER_FILE
    if not marker_path.is_file():
        return None
    try:
        data = json.loads(marker_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


def _check_zip_member(dest: Path, name: str) -> None:
    resolved = (dest / name).resolve()
    if resolved != dest and dest not in resolved.parents:
        raise SourceUnavailableError(f"Archive member escapes extraction directory: {name}")


def _unpack(content: bytes, dest: Path) -> None:
    buffer = io.BytesIO(content)

    if zipfile.is_zipfile(buffer):
        try:
            with zipfile.ZipFile(buffer) as archive:
                for name in archive.namelist():
                    _check_zip_member(dest.resolve(), name)
                archive.extractall(dest)
        except zipfile.BadZipFile as e:
            raise SourceUnavailableError(f"Failed to extract zip archive: {e}")
        return

    buffer.seek(0)
    try:
        with tarfile.open(fileobj=buffer, mode="r:*") as archive:
            archive.extractall(dest, filter="data")
    except tarfile.TarError as e:
        raise SourceUnavailableError(f"Failed to extract archive: {e}")


def extract_archive(content: bytes, target: Path, marker: dict[str, Any] | None = None) -> Path:
    """Extract a tar or zip archive into ``target``.

    The archive is unpacked into a temporary sibling directory and renamed
    into place, so ``target`` never holds a partial extraction.

    Args:
        content: Archive bytes.
        target: Destination directory (replaced if it exists).
        marker: Optional data recorded in the marker file.

    Returns:
        The target directory.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_dir = Path(tempfile.mkdtemp(dir=target.parent, prefix=f".{target.name}-"))

    try:
        _unpack(content, tmp_dir)
        if marker is not None:
            (tmp_dir / MARKER_FILE).write_text(json.dumps(marker, indent=2), encoding="utf-8")
        if target.exists():
            shutil.rmtree(target)
        os.replace(tmp_dir, target)
    except Exception:
        shutil.rmtree(tmp_dir, ignore_errors=True)
        raise

    logger.debug("Extracted archive to %s", target)
    return target


def archive_root(target: Path) -> Path:
    """Return the directory holding an extracted archive's content.

    Archives that wrap everything in a single top-level directory (tarballs
    from package registries, GitHub archives) resolve to that directory.
    """
    entries = [entry for entry in target.iterdir() if not entry.name.startswith(".")]
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return target
