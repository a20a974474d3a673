"""Template registry and resolution engine.

Locates named project templates across local directories, Git repositories,
HTTP archives and package registries, caches resolutions with a TTL, and
hands the rendering stage a directory plus metadata regardless of origin.
"""

from registry.cache import CacheEntry, CacheStore, cache_key
from registry.config import Config, get_config, load_config
from registry.errors import (
    ConfigurationError,
    IntegrityError,
    RegistryError,
    SourceUnavailableError,
    TemplateNotFoundError,
    TemplateProcessingError,
)
from registry.manager import ResolvedTemplate, TemplateManager
from registry.sources import SourceAdapter, build_adapters

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Manager
    "TemplateManager",
    "ResolvedTemplate",
    # Cache
    "CacheEntry",
    "CacheStore",
    "cache_key",
    # Config
    "Config",
    "get_config",
    "load_config",
    # Sources
    "SourceAdapter",
    "build_adapters",
    # Errors
    "RegistryError",
    "SourceUnavailableError",
    "IntegrityError",
    "TemplateNotFoundError",
    "TemplateProcessingError",
    "ConfigurationError",
]
