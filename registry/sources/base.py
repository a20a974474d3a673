"""Source adapter contract and template discovery.

Every adapter materializes a root directory for its source and then shares
the same discovery rules:

    root/
    ├── template.json        <- the root itself is a single template
    or
    root/
    ├── basic/
    │   ├── template.json    <- one template per subdirectory
    │   └── ...
    └── admin/
        ├── template.yaml
        └── ...
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import tomllib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from registry.errors import TemplateNotFoundError, TemplateProcessingError
from schemas.template import TemplateMetadata

logger = logging.getLogger(__name__)

DESCRIPTOR_FILES = ("template.json", "template.yaml", "template.yml", "template.toml")


def find_descriptor(template_dir: Path) -> Path | None:
    """Return the first descriptor file present in ``template_dir``."""
    for name in DESCRIPTOR_FILES:
        candidate = template_dir / name
        if candidate.is_file():
            return candidate
    return None


def load_metadata(template_dir: Path) -> TemplateMetadata:
    """Load and validate the descriptor of a template directory.

    Args:
        template_dir: Directory expected to hold a descriptor file.

    Returns:
        Parsed TemplateMetadata.

    Raises:
        TemplateProcessingError: If the descriptor is missing or malformed.
    """
    descriptor = find_descriptor(template_dir)
    if descriptor is None:
        raise TemplateProcessingError(
            f"No template descriptor found in {template_dir}",
            path=str(template_dir),
        )

    try:
        text = descriptor.read_text(encoding="utf-8")
        if descriptor.suffix == ".json":
            data: Any = json.loads(text)
        elif descriptor.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = tomllib.loads(text)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError, tomllib.TOMLDecodeError) as e:
        raise TemplateProcessingError(
            f"Invalid template descriptor {descriptor}: {e}", path=str(descriptor)
        )

    if not isinstance(data, dict):
        raise TemplateProcessingError(
            f"Template descriptor must be a mapping: {descriptor}", path=str(descriptor)
        )

    try:
        return TemplateMetadata.model_validate(data)
    except ValidationError as e:
        raise TemplateProcessingError(
            f"Invalid template descriptor {descriptor}: {e}", path=str(descriptor)
        )


def discover_templates(root: Path) -> list[tuple[Path, TemplateMetadata]]:
    """Find every template below ``root``.

    Subdirectories with an unreadable descriptor are skipped with a warning
    so one broken template does not hide its siblings.
    """
    if find_descriptor(root):
        return [(root, load_metadata(root))]

    found: list[tuple[Path, TemplateMetadata]] = []
    for template_dir in sorted(root.iterdir()):
        if not template_dir.is_dir() or template_dir.name.startswith("."):
            continue
        if find_descriptor(template_dir) is None:
            continue
        try:
            found.append((template_dir, load_metadata(template_dir)))
        except TemplateProcessingError as e:
            logger.warning("Skipping template %s: %s", template_dir, e)
    return found


def _matches(
    template_dir: Path,
    metadata: TemplateMetadata,
    template_name: str,
    project_type: str | None,
) -> bool:
    if project_type is not None and metadata.project_type != project_type:
        return False
    return template_name in (template_dir.name, metadata.name)


def find_template(
    root: Path,
    template_name: str,
    project_type: str | None = None,
) -> tuple[Path, TemplateMetadata]:
    """Locate one template below ``root`` by directory or metadata name.

    Raises:
        TemplateNotFoundError: If no template matches.
        TemplateProcessingError: If the directory named ``template_name``
            has a missing or malformed descriptor.
    """
    key = f"{project_type}:{template_name}" if project_type else template_name

    if not template_name or template_name in (".", "..") or "/" in template_name or "\\" in template_name:
        raise TemplateNotFoundError(key, f"Invalid template name: {template_name!r}")

    if find_descriptor(root):
        metadata = load_metadata(root)
        if _matches(root, metadata, template_name, project_type):
            return root, metadata
        raise TemplateNotFoundError(key, f"Template not found: {key} (source provides '{metadata.name}')")

    candidate = root / template_name
    if candidate.is_dir():
        metadata = load_metadata(candidate)
        if project_type is None or metadata.project_type == project_type:
            return candidate, metadata

    for template_dir, metadata in discover_templates(root):
        if template_dir == candidate:
            continue
        if _matches(template_dir, metadata, template_name, project_type):
            return template_dir, metadata

    raise TemplateNotFoundError(key)


def source_digest(*parts: str | None) -> str:
    """Deterministic short digest used to name per-source cache directories."""
    joined = "\0".join(part or "" for part in parts)
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()[:16]


class SourceAdapter(ABC):
    """Materializes templates from one kind of source.

    Subclasses implement ``materialize`` to produce a local root directory;
    listing and lookup are shared.
    """

    source_type: str = ""

    @abstractmethod
    async def materialize(self, source: Any) -> Path:
        """Make the source's content available locally and return its root."""

    async def fetch_list(self, source: Any) -> list[TemplateMetadata]:
        """List metadata for every template the source provides."""
        root = await self.materialize(source)
        found = await asyncio.to_thread(discover_templates, root)
        return [metadata for _, metadata in found]

    async def fetch_one(
        self,
        source: Any,
        template_name: str,
        project_type: str | None = None,
    ) -> tuple[Path, TemplateMetadata]:
        """Resolve a single template to its directory and metadata."""
        root = await self.materialize(source)
        return await asyncio.to_thread(find_template, root, template_name, project_type)
