"""Workflow run state and the completion summary."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

type WorkflowStatus = Literal["queued", "in_progress", "completed"]

type WorkflowConclusion = Literal[
    "success",
    "failure",
    "cancelled",
    "skipped",
    "timed_out",
    "action_required",
    "neutral",
    "stale",
]


@dataclass(frozen=True, kw_only=True)
class WorkflowRun:
    """Snapshot of a single workflow run as reported by the provider.

    ``conclusion`` is only set once ``status`` is ``"completed"``.
    """

    id: int
    name: str
    status: WorkflowStatus
    conclusion: WorkflowConclusion | None = None
    url: str = ""
    created_at: datetime
    updated_at: datetime

    @property
    def is_completed(self) -> bool:
        """Whether the run reached a terminal state."""
        return self.status == "completed"


@dataclass(frozen=True, kw_only=True)
class Summary:
    """Outcome of all runs for a commit, built once everything completed."""

    total_runs: int
    success_count: int
    failure_count: int
    other_count: int
    duration: timedelta

    @classmethod
    def from_runs(cls, runs: Sequence[WorkflowRun], duration: timedelta) -> "Summary":
        """Count run conclusions; anything but success/failure is "other"."""
        success = sum(1 for run in runs if run.conclusion == "success")
        failure = sum(1 for run in runs if run.conclusion == "failure")
        return cls(
            total_runs=len(runs),
            success_count=success,
            failure_count=failure,
            other_count=len(runs) - success - failure,
            duration=timedelta(seconds=round(duration.total_seconds())),
        )

    @property
    def succeeded(self) -> bool:
        """True when no run failed."""
        return self.failure_count == 0
