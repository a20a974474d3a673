"""
Tests for the Git source adapter.

Repositories are created on the fly and cloned over file:// URLs.
"""

import base64
import shutil
import subprocess
from pathlib import Path

import pytest

from registry.errors import SourceUnavailableError, TemplateNotFoundError
from registry.sources.git import GitSourceAdapter, auth_header
from schemas.registry import GitAuth, GitSource
from tests.conftest import write_template

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def git(*args: str, cwd: Path) -> None:
    subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Git repository with templates under templates/."""
    repo_dir = tmp_path / "origin"
    repo_dir.mkdir()
    git("init", "-q", "-b", "main", cwd=repo_dir)
    write_template(repo_dir / "templates", "basic", "vue")
    write_template(repo_dir / "templates", "spring-boot", "java")
    git("add", ".", cwd=repo_dir)
    git("commit", "-q", "-m", "Add templates", cwd=repo_dir)
    return repo_dir


class TestAuthHeader:
    """Per-invocation credentials."""

    def test_no_auth(self):
        assert auth_header(None) is None
        assert auth_header(GitAuth(username="bot")) is None

    def test_token_with_default_username(self):
        header = auth_header(GitAuth(token="ghp_x"))

        encoded = base64.b64encode(b"x-access-token:ghp_x").decode("ascii")
        assert header == f"Authorization: Basic {encoded}"

    def test_token_with_username(self):
        header = auth_header(GitAuth(username="ci-bot", token="t"))

        assert base64.b64encode(b"ci-bot:t").decode("ascii") in header


@requires_git
class TestGitSourceAdapter:
    """Clone, update and subfolder handling."""

    @pytest.mark.asyncio
    async def test_fetch_list_from_subfolder(self, cache_dir: Path, repo: Path):
        adapter = GitSourceAdapter(cache_dir)
        source = GitSource(url=repo.as_uri(), branch="main", subfolder="templates")

        templates = await adapter.fetch_list(source)

        assert sorted(metadata.name for metadata in templates) == ["basic", "spring-boot"]
        assert (adapter.checkout_dir(source) / ".git").is_dir()

    @pytest.mark.asyncio
    async def test_fetch_one(self, cache_dir: Path, repo: Path):
        adapter = GitSourceAdapter(cache_dir)
        source = GitSource(url=repo.as_uri(), subfolder="templates")

        path, metadata = await adapter.fetch_one(source, "spring-boot", "java")

        assert metadata.project_type == "java"
        assert path.name == "spring-boot"
        assert adapter.checkout_dir(source) in path.parents

    @pytest.mark.asyncio
    async def test_update_picks_up_new_commits(self, cache_dir: Path, repo: Path):
        adapter = GitSourceAdapter(cache_dir)
        source = GitSource(url=repo.as_uri(), branch="main", subfolder="templates")
        await adapter.fetch_list(source)

        write_template(repo / "templates", "admin", "vue")
        git("add", ".", cwd=repo)
        git("commit", "-q", "-m", "Add admin", cwd=repo)

        templates = await adapter.fetch_list(source)

        assert "admin" in {metadata.name for metadata in templates}

    @pytest.mark.asyncio
    async def test_checkout_per_ref(self, cache_dir: Path, repo: Path):
        adapter = GitSourceAdapter(cache_dir)
        main = GitSource(url=repo.as_uri(), branch="main")
        default = GitSource(url=repo.as_uri())

        assert adapter.checkout_dir(main) != adapter.checkout_dir(default)

    @pytest.mark.asyncio
    async def test_missing_subfolder(self, cache_dir: Path, repo: Path):
        adapter = GitSourceAdapter(cache_dir)

        with pytest.raises(TemplateNotFoundError, match="Subfolder"):
            await adapter.fetch_list(GitSource(url=repo.as_uri(), subfolder="nope"))

    @pytest.mark.asyncio
    async def test_unknown_branch(self, cache_dir: Path, repo: Path):
        adapter = GitSourceAdapter(cache_dir)

        with pytest.raises(SourceUnavailableError, match="git clone"):
            await adapter.fetch_list(GitSource(url=repo.as_uri(), branch="does-not-exist"))

        assert not adapter.checkout_dir(GitSource(url=repo.as_uri(), branch="does-not-exist")).exists()

    @pytest.mark.asyncio
    async def test_unreachable_repository(self, cache_dir: Path, tmp_path: Path):
        adapter = GitSourceAdapter(cache_dir)

        with pytest.raises(SourceUnavailableError):
            await adapter.fetch_list(GitSource(url=(tmp_path / "missing").as_uri()))


@pytest.mark.asyncio
async def test_git_not_installed(cache_dir: Path):
    adapter = GitSourceAdapter(cache_dir, git_executable="definitely-not-git")

    with pytest.raises(SourceUnavailableError, match="not installed"):
        await adapter.fetch_list(GitSource(url="https://example.com/templates.git"))
