"""Fixtures for integration tests."""

import subprocess
from pathlib import Path
from typing import Protocol

import pytest


class CommitFn(Protocol):
    """Protocol for git commit function."""

    def __call__(self, message: str) -> str:
        """Create a commit and return its SHA."""


class PushFn(Protocol):
    """Protocol for git push function."""

    def __call__(self) -> None:
        """Push HEAD to a local mirror remote."""


def git(cwd: Path, *args: str) -> str:
    """Run git and return its stripped output."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create an initialized git repository with a GitHub origin."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "--initial-branch=main")
    git(repo, "config", "user.email", "test@example.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "remote", "add", "origin", "git@github.com:octo/repo.git")
    return repo


@pytest.fixture
def git_commit(git_repo: Path) -> CommitFn:
    """Return a function to create commits in the test repo."""

    def _commit(message: str) -> str:
        git(git_repo, "add", "-A")
        git(git_repo, "commit", "--allow-empty", "-m", message)
        return git(git_repo, "rev-parse", "HEAD")

    return _commit


@pytest.fixture
def git_push(git_repo: Path, tmp_path: Path) -> PushFn:
    """Return a function pushing HEAD to a local bare remote."""
    mirror = tmp_path / "mirror.git"
    git(tmp_path, "init", "--bare", str(mirror))
    git(git_repo, "remote", "add", "mirror", str(mirror))

    def _push() -> None:
        git(git_repo, "push", "mirror", "HEAD:main")
        git(git_repo, "fetch", "mirror")

    return _push
