"""Console rendering of workflow run progress."""

import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TextIO

from octap.models.workflow import Summary, WorkflowRun

STATUS_SYMBOLS: Mapping[str, str] = {
    "queued": "⏸",
    "in_progress": "🔄",
    "success": "✅",
    "failure": "❌",
    "cancelled": "⚪",
    "skipped": "⏭",
    "timed_out": "⏱",
}

RULE = "─" * 50


class Display(ABC):
    """Sink for progress updates from the monitor."""

    @abstractmethod
    def update(
        self, runs: Sequence[WorkflowRun], last_update: datetime, interval: float
    ) -> None:
        """Show the latest snapshot of runs."""

    @abstractmethod
    def show_waiting(self, commit_sha: str, repo_name: str) -> None:
        """Tell the user no workflow has started for the commit yet."""

    def show_countdown(self, remaining: float) -> None:
        """Show the time left until the next poll."""

    def show_summary(self, summary: Summary) -> None:
        """Show the final outcome once every run completed."""


def run_symbol(run: WorkflowRun) -> str:
    """Symbol for a run's status, or its conclusion once completed."""
    key = run.conclusion if run.is_completed and run.conclusion else run.status
    return STATUS_SYMBOLS.get(key, "❔")


def run_state(run: WorkflowRun) -> str:
    """Human readable state of a run."""
    if run.is_completed:
        return run.conclusion or "completed"
    return run.status.replace("_", " ")


def format_duration(seconds: float) -> str:
    """Format a duration as ``1h2m3s`` style text."""
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


@dataclass(kw_only=True)
class ConsoleDisplay(Display):
    """Line oriented display.

    Prints a table of runs the first time any are seen, then one line per
    run whose state changed.
    """

    repo_name: str
    commit_sha: str
    stream: TextIO = field(default_factory=lambda: sys.stdout)
    _seen: dict[int, WorkflowRun] = field(default_factory=dict, init=False)
    _countdown_shown: bool = field(default=False, init=False)

    def update(
        self, runs: Sequence[WorkflowRun], last_update: datetime, interval: float
    ) -> None:
        """Print new runs and state changes."""
        if not runs:
            return

        if not self._seen:
            header = f"{self.repo_name}@{self.commit_sha[:8]}"
            self._print(f"📋 Workflow status for {header}")
            self._print(RULE)
            for run in runs:
                self._print(f"{run_symbol(run)} {run.name}: {run_state(run)}")
            self._print(RULE)
        else:
            stamp = last_update.astimezone().strftime("%H:%M:%S")
            for run in runs:
                previous = self._seen.get(run.id)
                if previous is None or (previous.status, previous.conclusion) != (
                    run.status,
                    run.conclusion,
                ):
                    self._print(
                        f"[{stamp}] {run_symbol(run)} {run.name}: {run_state(run)}"
                    )

        self._seen.update((run.id, run) for run in runs)
        completed = sum(1 for run in self._seen.values() if run.is_completed)
        self._print(f"Progress: {completed}/{len(self._seen)} completed")

    def show_waiting(self, commit_sha: str, repo_name: str) -> None:
        """Print a waiting notice."""
        self._print(
            f"⏳ Waiting for workflows to start for commit {commit_sha[:8]} "
            f"in {repo_name}..."
        )

    def show_countdown(self, remaining: float) -> None:
        """Rewrite the countdown line in place on terminals."""
        if not self.stream.isatty():
            return
        self.stream.write(f"\r⏱  Next check in {format_duration(remaining)}   ")
        self.stream.flush()
        self._countdown_shown = True

    def show_summary(self, summary: Summary) -> None:
        """Print the completion banner."""
        self._print("")
        self._print("━" * 36)
        self._print("🎉 All workflows completed!")
        self._print("━" * 36)
        self._print(f"Total runs: {summary.total_runs}")
        self._print(f"✅ Success: {summary.success_count}")
        if summary.failure_count:
            self._print(f"❌ Failed: {summary.failure_count}")
        if summary.other_count:
            self._print(f"⚠️  Other: {summary.other_count}")
        self._print(f"Duration: {format_duration(summary.duration.total_seconds())}")

    def _print(self, line: str) -> None:
        if self._countdown_shown:
            self.stream.write("\r\033[K")
            self._countdown_shown = False
        print(line, file=self.stream)
