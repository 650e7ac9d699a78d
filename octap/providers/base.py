"""Abstract base class for workflow run providers."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from octap.models.workflow import WorkflowRun


class ProviderError(Exception):
    """Base error for provider failures."""


class AuthenticationError(ProviderError):
    """Raised when the provider rejects the credentials.

    Retrying cannot help, so monitoring stops.
    """


class APIRequestError(ProviderError):
    """Raised when a request fails for any other reason."""


@dataclass(frozen=True, kw_only=True)
class WorkflowRunProvider(ABC):
    """Abstract base for sources of workflow runs attached to a commit."""

    @abstractmethod
    async def get_workflow_runs(self, commit_sha: str) -> Sequence[WorkflowRun]:
        """Fetch the current state of every run for ``commit_sha``.

        Args:
            commit_sha: Full SHA of the monitored commit

        Returns:
            Latest snapshot of each run (possibly empty when no workflow
            has started yet)

        Raises:
            AuthenticationError: If the credentials are rejected
            APIRequestError: If the request fails for any other reason

        """
