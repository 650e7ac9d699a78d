"""Integration tests for git metadata lookup."""

import logging
from pathlib import Path

import pytest

from octap.git import (
    CommitNotPushedError,
    RepositoryError,
    get_current_commit,
    get_repository,
)
from octap.models.repository import Repository

from .conftest import CommitFn, PushFn, git


class TestGetRepository:
    """Tests for get_repository."""

    async def test_reads_origin(self, git_repo: Path) -> None:
        """The origin remote identifies the repository."""
        assert await get_repository(git_repo) == Repository(owner="octo", name="repo")

    async def test_rejects_non_github_origin(self, git_repo: Path) -> None:
        """Origins outside github.com are refused."""
        git(git_repo, "remote", "set-url", "origin", "https://gitlab.com/octo/repo")

        with pytest.raises(RepositoryError, match="Failed to parse GitHub URL"):
            await get_repository(git_repo)

    async def test_fails_outside_repository(self, tmp_path: Path) -> None:
        """A plain directory is not a repository."""
        with pytest.raises(RepositoryError):
            await get_repository(tmp_path)


class TestGetCurrentCommit:
    """Tests for get_current_commit."""

    async def test_returns_pushed_head(
        self, git_repo: Path, git_commit: CommitFn, git_push: PushFn
    ) -> None:
        """HEAD is returned once a remote branch contains it."""
        sha = git_commit("initial")
        git_push()

        assert await get_current_commit(git_repo) == sha

    async def test_rejects_unpushed_head(
        self, git_repo: Path, git_commit: CommitFn, git_push: PushFn
    ) -> None:
        """A local-only commit cannot be monitored."""
        git_commit("initial")
        git_push()
        sha = git_commit("local only")

        with pytest.raises(CommitNotPushedError, match=sha[:8]):
            await get_current_commit(git_repo)

    async def test_reports_unpushed_head_to_logger(
        self,
        git_repo: Path,
        git_commit: CommitFn,
        git_push: PushFn,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """The warning goes to the logger handed in by the caller."""
        git_commit("initial")
        git_push()
        sha = git_commit("local only")
        logger = logging.getLogger("octap.test")

        with (
            caplog.at_level(logging.WARNING, logger="octap.test"),
            pytest.raises(CommitNotPushedError),
        ):
            await get_current_commit(git_repo, logger)

        names = {record.name for record in caplog.records}
        assert "octap.test" in names
        assert "octap.git" not in names
        assert sha in caplog.text

    async def test_fails_without_commits(self, git_repo: Path) -> None:
        """An empty repository has no HEAD."""
        with pytest.raises(RepositoryError):
            await get_current_commit(git_repo)
