"""Git repository template source.

Repositories are shallow-cloned into the cache directory at a path derived
from ``(url, branch, subfolder)``. Later fetches update the same checkout to
the requested ref, so a checkout never serves content from another ref.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path

from registry.errors import SourceUnavailableError, TemplateNotFoundError
from registry.sources.base import SourceAdapter, source_digest
from schemas.registry import GitAuth, GitSource

logger = logging.getLogger(__name__)

DEFAULT_GIT_USERNAME = "x-access-token"


def auth_header(auth: GitAuth | None) -> str | None:
    """Build an HTTP Authorization header for git's ``http.extraHeader``."""
    if auth is None or not auth.token:
        return None
    username = auth.username or DEFAULT_GIT_USERNAME
    encoded = base64.b64encode(f"{username}:{auth.token}".encode("utf-8")).decode("ascii")
    return f"Authorization: Basic {encoded}"


class GitSourceAdapter(SourceAdapter):
    """Clone or update Git repositories holding templates.

    Example:
        >>> adapter = GitSourceAdapter(Path(".template_cache"))
        >>> await adapter.fetch_list(GitSource(url="https://github.com/acme/templates"))
    """

    source_type = "git"

    def __init__(self, cache_dir: Path, git_executable: str = "git"):
        """Initialize the adapter.

        Args:
            cache_dir: Root cache directory; checkouts go under ``git/``.
            git_executable: Git binary to invoke.
        """
        self.cache_dir = Path(cache_dir)
        self.git_executable = git_executable

    def checkout_dir(self, source: GitSource) -> Path:
        """Deterministic checkout location for a source."""
        return self.cache_dir / "git" / source_digest(source.url, source.branch, source.subfolder)

    async def materialize(self, source: GitSource) -> Path:
        repo_dir = await asyncio.to_thread(self._sync, source)

        if not source.subfolder:
            return repo_dir

        root = (repo_dir / source.subfolder).resolve()
        if repo_dir.resolve() not in root.parents or not root.is_dir():
            raise TemplateNotFoundError(
                f"{source.url}#{source.subfolder}",
                f"Subfolder '{source.subfolder}' not found in {source.url}",
            )
        return root

    def _sync(self, source: GitSource) -> Path:
        """Clone the repository, or update an existing checkout."""
        repo_dir = self.checkout_dir(source)
        if (repo_dir / ".git").is_dir():
            self._update(repo_dir, source)
        else:
            self._clone(repo_dir, source)
        return repo_dir

    def _clone(self, repo_dir: Path, source: GitSource) -> None:
        logger.debug("Cloning %s (branch=%s) into %s", source.url, source.branch or "default", repo_dir)
        repo_dir.parent.mkdir(parents=True, exist_ok=True)
        if repo_dir.exists():
            # Leftover from an interrupted run
            shutil.rmtree(repo_dir)

        tmp_dir = Path(tempfile.mkdtemp(dir=repo_dir.parent, prefix=f".{repo_dir.name}-"))
        args = ["clone", "--depth", "1", "--quiet"]
        if source.branch:
            args += ["--branch", source.branch]
        args += [source.url, str(tmp_dir)]

        try:
            self._run_git(*args, auth=source.auth)
            try:
                os.replace(tmp_dir, repo_dir)
            except OSError:
                # A concurrent resolution finished the same clone first
                if not (repo_dir / ".git").is_dir():
                    raise
                shutil.rmtree(tmp_dir, ignore_errors=True)
        except Exception:
            shutil.rmtree(tmp_dir, ignore_errors=True)
            raise

    def _update(self, repo_dir: Path, source: GitSource) -> None:
        ref = source.branch or "HEAD"
        logger.debug("Updating %s to %s", repo_dir, ref)
        self._run_git("fetch", "--depth", "1", "--quiet", "origin", ref, cwd=repo_dir, auth=source.auth)
        self._run_git("reset", "--hard", "--quiet", "FETCH_HEAD", cwd=repo_dir)
        self._run_git("clean", "-ffdx", "--quiet", cwd=repo_dir)

    def _run_git(
        self,
        *args: str,
        cwd: Path | None = None,
        auth: GitAuth | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run a git command.

        Credentials are passed per invocation and never stored in the
        checkout's configuration.

        Raises:
            SourceUnavailableError: If git is missing or the command fails.
        """
        cmd = [self.git_executable]
        header = auth_header(auth)
        if header:
            cmd += ["-c", f"http.extraHeader={header}"]
        cmd += list(args)

        env = dict(os.environ)
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_SSH_COMMAND", "ssh -o BatchMode=yes")

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
                env=env,
            )
        except FileNotFoundError:
            raise SourceUnavailableError("Git is not installed or not in PATH")

        if result.returncode != 0:
            raise SourceUnavailableError(
                f"Git command failed: git {args[0]}\nstderr: {result.stderr.strip()}",
                command=args[0],
                returncode=result.returncode,
            )
        return result
