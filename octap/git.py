"""Read repository and commit information from the local git checkout."""

import asyncio
import logging
from pathlib import Path

from octap.models.repository import Repository

log = logging.getLogger(__name__)

GITHUB_URL_PREFIXES = (
    "git@github.com:",
    "https://github.com/",
    "ssh://git@github.com/",
)


class RepositoryError(Exception):
    """Raised when the working directory cannot be monitored."""


class CommitNotPushedError(RepositoryError):
    """Raised when HEAD is not on any remote branch."""


def parse_github_url(url: str) -> Repository | None:
    """Extract owner and name from a GitHub remote URL.

    Accepts the scp-like SSH form, HTTPS and ``ssh://`` URLs, with or
    without a trailing ``.git``.

    Returns:
        The repository, or None if ``url`` does not point at github.com

    """
    url = url.strip().removesuffix(".git")
    for prefix in GITHUB_URL_PREFIXES:
        if url.startswith(prefix):
            parts = url.removeprefix(prefix).split("/")
            if len(parts) == 2 and all(parts):
                return Repository(owner=parts[0], name=parts[1])
    return None


async def _git(path: Path, *args: str) -> str:
    """Run a git command in ``path`` and return its stripped stdout."""
    try:
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=path,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise RepositoryError(f"Failed to run git: {exc}") from exc

    stdout, stderr = await process.communicate()

    if process.returncode != 0:
        raise RepositoryError(
            f"git {args[0]} failed: {stderr.decode(errors='replace').strip()}"
        )

    return stdout.decode().strip()


async def get_repository(path: Path) -> Repository:
    """Identify the GitHub repository behind the ``origin`` remote."""
    url = await _git(path, "remote", "get-url", "origin")
    if (repository := parse_github_url(url)) is None:
        raise RepositoryError(f"Failed to parse GitHub URL: {url}")
    return repository


async def get_current_commit(path: Path, logger: logging.Logger = log) -> str:
    """Return the SHA of HEAD, checking that it has been pushed.

    Raises:
        CommitNotPushedError: If no remote branch contains HEAD

    """
    sha = await _git(path, "rev-parse", "HEAD")

    try:
        branches = await _git(path, "branch", "-r", "--contains", sha)
    except RepositoryError:
        branches = ""

    if not branches:
        logger.warning("Commit not found in remote branches: %s", sha)
        raise CommitNotPushedError(
            f"Commit {sha[:8]} has not been pushed to remote repository"
        )

    return sha
