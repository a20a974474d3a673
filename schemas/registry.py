"""Registry configuration schemas.

A registry configuration is an ordered list of named entries, each bound to
exactly one template source, plus the cache settings shared by all sources.
Sources are a tagged union keyed by their ``type`` field.
"""

from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

DEFAULT_CACHE_DIR = Path(".template_cache")
DEFAULT_CACHE_TTL = 3600
DEFAULT_TEMPLATES_DIR = Path("templates")


class GitAuth(BaseModel):
    """Credentials for a Git transport."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str | None = None
    token: str | None = None


class HttpAuth(BaseModel):
    """Credentials for an HTTP download (bearer token or basic auth)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    bearer_token: str | None = None
    basic_auth: tuple[str, str] | None = None

    @model_validator(mode="after")
    def _check_single_scheme(self) -> "HttpAuth":
        if self.bearer_token and self.basic_auth:
            raise ValueError("Use either bearer_token or basic_auth, not both")
        return self


class LocalSource(BaseModel):
    """Templates stored in a directory on the local filesystem."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["local"] = "local"
    path: Path


class GitSource(BaseModel):
    """Templates stored in a Git repository."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["git"] = "git"
    url: str = Field(..., min_length=1)
    branch: str | None = None
    subfolder: str | None = None
    auth: GitAuth | None = None


class HttpSource(BaseModel):
    """Templates packaged as an archive served over HTTP."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["http"] = "http"
    url: str = Field(..., min_length=1)
    checksum: str | None = None
    auth: HttpAuth | None = None


class PackageRegistrySource(BaseModel):
    """Templates published as a package on an npm-compatible registry."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    type: Literal["npm", "package_registry"] = "npm"
    package: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    registry_url: str | None = Field(
        None, validation_alias=AliasChoices("registry_url", "registry")
    )


TemplateSource = Annotated[
    Union[LocalSource, GitSource, HttpSource, PackageRegistrySource],
    Field(discriminator="type"),
]


class RegistryEntry(BaseModel):
    """One configured, prioritized binding between a name and a source."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    source: TemplateSource
    enabled: bool = True
    priority: int = Field(0, ge=0, description="Lower numbers are tried first")

    @property
    def source_type(self) -> str:
        # Both tags of the package registry variant map to one adapter
        if isinstance(self.source, PackageRegistrySource):
            return "npm"
        return self.source.type


class RegistryConfig(BaseModel):
    """Process-wide registry configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    registries: tuple[RegistryEntry, ...] = Field(
        default_factory=tuple,
        validation_alias=AliasChoices("registries", "entries"),
    )
    cache_dir: Path = DEFAULT_CACHE_DIR
    cache_ttl: int = Field(
        DEFAULT_CACHE_TTL,
        ge=0,
        validation_alias=AliasChoices("cache_ttl", "cache_ttl_seconds"),
        description="Seconds a cached resolution stays valid",
    )

    @model_validator(mode="after")
    def _check_unique_names(self) -> "RegistryConfig":
        seen: set[str] = set()
        for entry in self.registries:
            if entry.name in seen:
                raise ValueError(f"Duplicate registry name: {entry.name}")
            seen.add(entry.name)
        return self

    @classmethod
    def default(cls) -> "RegistryConfig":
        """Single local registry at ./templates with a one hour cache."""
        return cls(
            registries=(
                RegistryEntry(
                    name="local",
                    source=LocalSource(path=DEFAULT_TEMPLATES_DIR),
                    enabled=True,
                    priority=0,
                ),
            ),
            cache_dir=DEFAULT_CACHE_DIR,
            cache_ttl=DEFAULT_CACHE_TTL,
        )

    def active_entries(self) -> list[RegistryEntry]:
        """Enabled entries in ascending priority order (stable on ties)."""
        return sorted(
            (entry for entry in self.registries if entry.enabled),
            key=lambda entry: entry.priority,
        )

    def get_entry(self, name: str) -> RegistryEntry | None:
        for entry in self.registries:
            if entry.name == name:
                return entry
        return None
