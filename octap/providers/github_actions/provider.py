"""GitHub Actions provider implementation."""

import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import cast

import aiohttp
from pydantic import ValidationError

from octap.models.workflow import WorkflowConclusion, WorkflowRun, WorkflowStatus
from octap.providers.base import (
    APIRequestError,
    AuthenticationError,
    WorkflowRunProvider,
)
from octap.providers.github_actions.config import GitHubActionsConfig
from octap.providers.github_actions.models import WorkflowRun as ApiWorkflowRun
from octap.providers.github_actions.models import WorkflowRunsResponse

log = logging.getLogger(__name__)

# GitHub reports a few waiting states that are all "not started yet" to us.
API_STATUS_TO_STATUS: Mapping[str, WorkflowStatus] = {
    "completed": "completed",
    "in_progress": "in_progress",
}


@dataclass(frozen=True, kw_only=True)
class GitHubActionsProvider(WorkflowRunProvider):
    """Lists the workflow runs of a commit through the GitHub REST API."""

    config: GitHubActionsConfig
    session: aiohttp.ClientSession = field(repr=False)
    logger: logging.Logger = field(default=log, repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: GitHubActionsConfig
    ) -> AsyncGenerator["GitHubActionsProvider", None]:
        """Create provider with managed session lifecycle."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"

        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=30),
        ) as session:
            yield cls(config=config, session=session)

    async def get_workflow_runs(self, commit_sha: str) -> Sequence[WorkflowRun]:
        """List every workflow run triggered for ``commit_sha``."""
        url = f"/repos/{self.config.owner}/{self.config.repo}/actions/runs"
        runs: list[WorkflowRun] = []
        page = 1

        while True:
            params = {
                "head_sha": commit_sha,
                "per_page": str(self.config.per_page),
                "page": str(page),
            }
            response = await self._get_runs_page(url, params)
            runs.extend(to_workflow_run(run) for run in response.workflow_runs)

            if len(response.workflow_runs) < self.config.per_page:
                break

            page += 1

        self.logger.debug(
            "Fetched workflow runs: repo=%s/%s commit=%s count=%d",
            self.config.owner,
            self.config.repo,
            commit_sha,
            len(runs),
        )
        return runs

    async def _get_runs_page(
        self, url: str, params: Mapping[str, str]
    ) -> WorkflowRunsResponse:
        try:
            async with self.session.get(url, params=params) as response:
                if response.status == 401:
                    text = await response.text()
                    raise AuthenticationError(
                        f"GitHub rejected the credentials: {response.status} {text}"
                    )
                if response.status != 200:
                    text = await response.text()
                    raise APIRequestError(
                        f"Failed to list workflow runs: {response.status} {text}"
                    )
                data = await response.json()
        except aiohttp.ClientError as exc:
            raise APIRequestError(f"Failed to list workflow runs: {exc}") from exc
        except TimeoutError as exc:
            raise APIRequestError("Timed out listing workflow runs") from exc
        except ValueError as exc:
            raise APIRequestError(f"Invalid workflow runs response: {exc}") from exc

        try:
            return WorkflowRunsResponse.model_validate(data)
        except ValidationError as exc:
            raise APIRequestError(f"Unexpected workflow runs payload: {exc}") from exc


def to_workflow_run(run: ApiWorkflowRun) -> WorkflowRun:
    """Convert an API payload into the domain snapshot."""
    status = API_STATUS_TO_STATUS.get(run.status, "queued")
    return WorkflowRun(
        id=run.id,
        name=run.name or str(run.id),
        status=status,
        conclusion=(
            cast(WorkflowConclusion, run.conclusion) if status == "completed" else None
        ),
        url=run.html_url,
        created_at=run.created_at,
        updated_at=run.updated_at,
    )
