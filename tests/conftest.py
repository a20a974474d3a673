"""
Pytest fixtures for the template registry tests.
"""

import io
import json
import tarfile
import zipfile
from pathlib import Path
from typing import Any

import pytest

from registry.errors import SourceUnavailableError, TemplateNotFoundError
from registry.sources.base import SourceAdapter
from schemas.template import TemplateMetadata

# =============================================================================
# Helpers
# =============================================================================


def write_template(
    root: Path,
    dir_name: str,
    project_type: str,
    name: str | None = None,
    **extra: Any,
) -> Path:
    """Create a template directory with a template.json descriptor."""
    template_dir = root / dir_name
    template_dir.mkdir(parents=True, exist_ok=True)
    descriptor = {"name": name or dir_name, "project_type": project_type, **extra}
    (template_dir / "template.json").write_text(json.dumps(descriptor), encoding="utf-8")
    (template_dir / "README.md").write_text(f"# {descriptor['name']}\n", encoding="utf-8")
    return template_dir


def make_tarball(files: dict[str, str | bytes], prefix: str = "") -> bytes:
    """Build a gzipped tarball in memory."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(name=f"{prefix}{name}")
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def make_zip(files: dict[str, str]) -> bytes:
    """Build a zip archive in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def descriptor_json(name: str, project_type: str, **extra: Any) -> str:
    return json.dumps({"name": name, "project_type": project_type, **extra})


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class StubAdapter(SourceAdapter):
    """In-memory adapter serving templates keyed by source path.

    ``templates`` maps a source path string to a list of (dir, metadata)
    pairs; ``failing`` holds source paths that raise SourceUnavailableError.
    """

    source_type = "local"

    def __init__(
        self,
        templates: dict[str, list[tuple[Path, TemplateMetadata]]],
        failing: set[str] | None = None,
    ):
        self.templates = templates
        self.failing = failing or set()
        self.list_calls: list[str] = []
        self.fetch_calls: list[tuple[str, str]] = []

    async def materialize(self, source: Any) -> Path:
        key = str(source.path)
        if key in self.failing:
            raise SourceUnavailableError(f"Registry offline: {key}")
        return Path(key)

    async def fetch_list(self, source: Any) -> list[TemplateMetadata]:
        key = str(source.path)
        self.list_calls.append(key)
        await self.materialize(source)
        return [metadata for _, metadata in self.templates.get(key, [])]

    async def fetch_one(
        self,
        source: Any,
        template_name: str,
        project_type: str | None = None,
    ) -> tuple[Path, TemplateMetadata]:
        key = str(source.path)
        self.fetch_calls.append((key, template_name))
        await self.materialize(source)
        for path, metadata in self.templates.get(key, []):
            if metadata.name == template_name and (
                project_type is None or metadata.project_type == project_type
            ):
                return path, metadata
        raise TemplateNotFoundError(f"{project_type}:{template_name}")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Local registry with vue and java templates."""
    root = tmp_path / "templates"
    write_template(
        root,
        "basic",
        "vue",
        description="Minimal Vue app",
        variables=[
            {"name": "project_name", "required": True},
            {"name": "use_router", "type": "boolean", "default": True},
        ],
    )
    write_template(root, "admin", "vue", description="Admin dashboard")
    write_template(root, "spring-boot", "java", tags=["backend"])
    return root


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment overrides out of tests."""
    for name in ("TEMPLATE_CACHE_DIR", "TEMPLATE_CACHE_TTL", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
