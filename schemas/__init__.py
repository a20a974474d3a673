"""Schemas module for registry configuration and template descriptors.

Provides Pydantic models for:
- Template sources (local, git, http, package registry)
- Registry entries and configuration
- Template metadata and substitution variables
"""

from .registry import (
    DEFAULT_CACHE_DIR,
    DEFAULT_CACHE_TTL,
    DEFAULT_TEMPLATES_DIR,
    GitAuth,
    GitSource,
    HttpAuth,
    HttpSource,
    LocalSource,
    PackageRegistrySource,
    RegistryConfig,
    RegistryEntry,
    TemplateSource,
)
from .template import TemplateMetadata, TemplateVariable, VariableType

__all__ = [
    # Registry
    "DEFAULT_CACHE_DIR",
    "DEFAULT_CACHE_TTL",
    "DEFAULT_TEMPLATES_DIR",
    "GitAuth",
    "GitSource",
    "HttpAuth",
    "HttpSource",
    "LocalSource",
    "PackageRegistrySource",
    "RegistryConfig",
    "RegistryEntry",
    "TemplateSource",
    # Templates
    "TemplateMetadata",
    "TemplateVariable",
    "VariableType",
]
