"""Poll loop watching the workflow runs of one commit until they complete."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from octap.display import Display
from octap.models.repository import Repository
from octap.models.workflow import Summary, WorkflowRun
from octap.notifier import Notifier
from octap.providers.base import AuthenticationError, ProviderError, WorkflowRunProvider
from octap.tracker import RunStateTracker

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class MonitorConfig:
    """What to watch and how often."""

    repository: Repository
    commit_sha: str
    interval: float = 5.0
    countdown_interval: float = 0.1


@dataclass(kw_only=True)
class Monitor:
    """Polls the provider until every run of the commit completed.

    The first poll happens immediately; until one succeeds, every poll is
    treated as the first. Runs already completed at that point are not
    announced individually, but if everything is complete the final
    summary still fires. Any later completion of a run that was
    seen running is announced once.

    Authentication failures end the loop; other provider errors are logged
    and the next poll proceeds as if nothing happened. Cancelling the task
    running ``run`` interrupts any wait immediately.
    """

    provider: WorkflowRunProvider
    notifier: Notifier
    display: Display
    config: MonitorConfig
    logger: logging.Logger = field(default=log, repr=False)
    tracker: RunStateTracker = field(default_factory=RunStateTracker)
    last_update: datetime | None = field(default=None, init=False)
    _started: float = field(default=0.0, init=False, repr=False)

    async def run(self) -> Summary:
        """Poll until completion and return the final summary.

        Raises:
            AuthenticationError: If the provider rejects the credentials

        """
        loop = asyncio.get_running_loop()
        self._started = time.monotonic()
        self.logger.debug(
            "Starting monitor: repo=%s commit=%s interval=%.1fs",
            self.config.repository.full_name,
            self.config.commit_sha,
            self.config.interval,
        )

        while True:
            next_poll = loop.time() + self.config.interval
            # The first successful poll counts as initial.
            is_initial = self.last_update is None
            if (summary := await self.poll(is_initial=is_initial)) is not None:
                return summary
            await self._wait_until(next_poll)

    async def poll(self, *, is_initial: bool = False) -> Summary | None:
        """Fetch runs once and react to what changed.

        Returns:
            The summary when monitoring is over, None to keep polling

        """
        try:
            runs = await self.provider.get_workflow_runs(self.config.commit_sha)
        except AuthenticationError:
            self.logger.error("Authentication with the provider failed")
            raise
        except ProviderError as exc:
            self.logger.error("Failed to get workflow runs: %s", exc)
            return None

        self.last_update = datetime.now(UTC)
        result = self.tracker.reconcile(runs, is_initial=is_initial)

        self.display.update(runs, self.last_update, self.config.interval)

        for run in result.newly_completed:
            await self._announce(run)

        if result.all_completed and runs and (is_initial or result.has_transition):
            summary = Summary.from_runs(
                runs, timedelta(seconds=time.monotonic() - self._started)
            )
            self.display.show_summary(summary)
            await self.notifier.notify_complete(summary)
            return summary

        if not runs and not is_initial:
            self.display.show_waiting(
                self.config.commit_sha, self.config.repository.full_name
            )

        return None

    async def _announce(self, run: WorkflowRun) -> None:
        if run.conclusion == "success":
            await self.notifier.notify_success(run)
        elif run.conclusion == "failure":
            await self.notifier.notify_failure(run)
        else:
            self.logger.info("%s finished: %s", run.name, run.conclusion)

    async def _wait_until(self, deadline: float) -> None:
        """Sleep until ``deadline``, refreshing the countdown meanwhile."""
        loop = asyncio.get_running_loop()
        while (remaining := deadline - loop.time()) > 0:
            self.display.show_countdown(remaining)
            await asyncio.sleep(min(self.config.countdown_interval, remaining))
