"""Template manager: multi-source listing and resolution.

Resolution is first-match-wins over enabled registry entries in ascending
priority order. Entries are tried one at a time so the outcome and the log
of failed attempts are deterministic.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from registry.cache import CacheEntry, CacheStore, cache_key
from registry.errors import (
    ConfigurationError,
    RegistryError,
    SourceUnavailableError,
    TemplateNotFoundError,
)
from registry.sources import SourceAdapter, build_adapters
from schemas.registry import RegistryConfig, RegistryEntry
from schemas.template import TemplateMetadata

logger = logging.getLogger(__name__)

CACHE_INDEX_FILE = "index.json"


@dataclass(frozen=True)
class ResolvedTemplate:
    """A template ready for the rendering stage.

    ``resolved_path`` is a read-only file tree; ``metadata.variables`` lists
    the substitution keys the renderer must supply.
    """

    resolved_path: Path
    metadata: TemplateMetadata
    registry_name: str | None = None
    from_cache: bool = False


class TemplateManager:
    """Answers "which templates exist" and "where is template X".

    The manager owns its cache store; pass one in to share or inspect it.

    Example:
        >>> manager = TemplateManager(RegistryConfig.default())
        >>> templates = await manager.list_templates("vue")
        >>> resolved = await manager.resolve("vue", "basic")
        >>> resolved.resolved_path
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        cache: CacheStore | None = None,
        adapters: dict[str, SourceAdapter] | None = None,
    ):
        """Initialize the manager.

        Args:
            config: Registry configuration (default: single ./templates entry).
            cache: Cache store (default: persisted under ``config.cache_dir``).
            adapters: Source adapters keyed by source type (default: built-ins).
        """
        self.config = config or RegistryConfig.default()
        self.cache = cache if cache is not None else CacheStore(
            ttl_seconds=self.config.cache_ttl,
            index_path=self.config.cache_dir / CACHE_INDEX_FILE,
        )
        self.adapters = adapters if adapters is not None else build_adapters(self.config.cache_dir)

    def active_entries(self) -> list[RegistryEntry]:
        """Enabled registry entries in the order they are consulted."""
        return self.config.active_entries()

    def _adapter_for(self, entry: RegistryEntry) -> SourceAdapter:
        adapter = self.adapters.get(entry.source_type)
        if adapter is None:
            raise ConfigurationError(
                f"No adapter for source type '{entry.source_type}' (registry '{entry.name}')",
                registry=entry.name,
            )
        return adapter

    async def list_templates(self, project_type: str | None = None) -> list[TemplateMetadata]:
        """List templates across all enabled registries.

        Results are concatenated in priority order without deduplication.
        A registry that fails is logged and skipped.

        Args:
            project_type: Only return templates of this project type.

        Returns:
            Metadata for every matching template.
        """
        templates: list[TemplateMetadata] = []

        for entry in self.active_entries():
            try:
                adapter = self._adapter_for(entry)
                found = await adapter.fetch_list(entry.source)
            except RegistryError as e:
                logger.warning("Failed to load templates from registry '%s': %s", entry.name, e)
                continue

            if project_type is not None:
                found = [metadata for metadata in found if metadata.project_type == project_type]
            logger.debug("Registry '%s' listed %d template(s)", entry.name, len(found))
            templates.extend(found)

        return templates

    async def list_template_names(self, project_type: str) -> list[str]:
        """Names of the templates available for a project type."""
        return [metadata.name for metadata in await self.list_templates(project_type)]

    async def resolve(self, project_type: str, template_name: str) -> ResolvedTemplate:
        """Resolve a template to a directory on disk plus its metadata.

        Args:
            project_type: Project type, e.g. "vue".
            template_name: Template name within that type.

        Returns:
            The resolved template.

        Raises:
            TemplateNotFoundError: If no enabled registry provides it.
            IntegrityError: If a download fails checksum verification.
            TemplateProcessingError: If the template's descriptor is malformed.
        """
        key = cache_key(project_type, template_name)

        active = self.active_entries()

        cached = self.cache.get(key)
        if cached is not None and cached.registry_name in {entry.name for entry in active}:
            logger.debug("Cache hit for %s", key)
            return ResolvedTemplate(
                resolved_path=cached.resolved_path,
                metadata=cached.metadata.model_copy(deep=True),
                registry_name=cached.registry_name,
                from_cache=True,
            )
        if cached is not None:
            logger.debug("Ignoring cached %s from inactive registry '%s'", key, cached.registry_name)

        for entry in active:
            adapter = self._adapter_for(entry)
            try:
                path, metadata = await adapter.fetch_one(entry.source, template_name, project_type)
            except (SourceUnavailableError, TemplateNotFoundError) as e:
                logger.warning("Registry '%s' could not provide %s: %s", entry.name, key, e)
                continue

            logger.info("Resolved %s from registry '%s'", key, entry.name)
            await asyncio.to_thread(
                self.cache.put,
                key,
                CacheEntry(
                    metadata=metadata,
                    resolved_path=path,
                    cached_at=self.cache.now(),
                    registry_name=entry.name,
                ),
            )
            return ResolvedTemplate(
                resolved_path=path,
                metadata=metadata.model_copy(deep=True),
                registry_name=entry.name,
            )

        raise TemplateNotFoundError(key)

    async def get_template_info(self, project_type: str, template_name: str) -> TemplateMetadata:
        """Metadata for a single template (resolving it if needed)."""
        return (await self.resolve(project_type, template_name)).metadata

    def invalidate(self, project_type: str, template_name: str) -> bool:
        """Forget the cached resolution of one template."""
        return self.cache.invalidate(cache_key(project_type, template_name))

    def clear_cache(self) -> None:
        self.cache.clear()
