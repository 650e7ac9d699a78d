"""Dispatch of configured actions for hook events."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from octap.actions.base import ActionExecutionError, ActionExecutor
from octap.models.action import Action
from octap.models.config import HooksConfig
from octap.models.event import WorkflowEvent
from octap.tasks import TaskTracker

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class HookExecutor:
    """Runs the actions configured for an event concurrently.

    Per-run events are fire-and-forget: ``execute`` returns once every
    action is launched. Terminal events block until the actions launched
    by that call have finished. Either way the actions are tracked for the
    lifetime of the executor, and ``wait_for_completion`` must be awaited
    before the process exits or in-flight notifications may be lost.

    Action failures never propagate out of the executor; they are logged.
    """

    hooks: HooksConfig = field(default_factory=HooksConfig)
    executors: Mapping[str, ActionExecutor[Any]] = field(default_factory=dict)
    logger: logging.Logger = field(default=log, repr=False)
    tracker: TaskTracker = field(default_factory=TaskTracker, repr=False)

    async def execute(self, event: WorkflowEvent) -> None:
        """Launch every action configured for ``event.kind``."""
        actions = self.hooks.actions_for(event.kind)
        self.logger.debug(
            "Executing hooks: event=%s repository=%s workflow=%s actions=%d",
            event.kind,
            event.repository,
            event.workflow,
            len(actions),
        )

        tasks = [
            self.tracker.spawn(
                self._run_action(index, action, event),
                name=f"hook-{event.kind}-{index}-{action.type}",
            )
            for index, action in enumerate(actions)
        ]

        if event.is_terminal and tasks:
            # asyncio.wait leaves the tasks running if we get cancelled.
            await asyncio.wait(tasks)
            self.logger.debug("All %s hooks finished", event.kind)

    async def wait_for_completion(self) -> None:
        """Wait for every action ever launched by this executor."""
        if self.tracker.pending:
            self.logger.debug(
                "Waiting for %d pending hook action(s)", self.tracker.pending
            )
        await self.tracker.wait_all()

    async def _run_action(
        self, index: int, action: Action, event: WorkflowEvent
    ) -> None:
        executor = self.executors.get(action.type)
        if executor is None:
            self.logger.warning(
                "No executor for action type %r (event=%s index=%d), skipping",
                action.type,
                event.kind,
                index,
            )
            return

        try:
            await executor.execute(action, event)
        except ActionExecutionError as exc:
            self.logger.warning(
                "Hook action failed: event=%s index=%d type=%s error=%s",
                event.kind,
                index,
                action.type,
                exc,
            )
        except Exception:
            self.logger.warning(
                "Hook action crashed: event=%s index=%d type=%s",
                event.kind,
                index,
                action.type,
                exc_info=True,
            )
        else:
            self.logger.debug(
                "Hook action executed: event=%s index=%d type=%s",
                event.kind,
                index,
                action.type,
            )
