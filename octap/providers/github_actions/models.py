"""Pydantic models for GitHub Actions API responses."""

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel


class WorkflowRun(BaseModel):
    """A workflow run from GitHub Actions API."""

    id: int
    name: str | None = None
    status: str
    conclusion: str | None = None
    html_url: str
    created_at: datetime
    updated_at: datetime


class WorkflowRunsResponse(BaseModel):
    """Response from list workflow runs API."""

    total_count: int = 0
    workflow_runs: Sequence[WorkflowRun]
