"""Translation of monitoring outcomes into hook events."""

import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field

from octap.hooks import HookExecutor
from octap.models.action import SoundAction
from octap.models.config import Config, HooksConfig
from octap.models.event import HookEvent, WorkflowEvent
from octap.models.workflow import Summary, WorkflowRun

log = logging.getLogger(__name__)

SYSTEM_SOUNDS: Mapping[str, tuple[str, str]] = {
    "darwin": (
        "/System/Library/Sounds/Glass.aiff",
        "/System/Library/Sounds/Basso.aiff",
    ),
    "linux": (
        "/usr/share/sounds/freedesktop/stereo/complete.oga",
        "/usr/share/sounds/freedesktop/stereo/dialog-error.oga",
    ),
    "win32": (
        r"C:\Windows\Media\tada.wav",
        r"C:\Windows\Media\Windows Critical Stop.wav",
    ),
}


def system_sounds(platform: str = sys.platform) -> tuple[str, str] | None:
    """Success and failure sound files shipped with the platform."""
    if platform.startswith("linux"):
        platform = "linux"
    return SYSTEM_SOUNDS.get(platform)


def default_sound_hooks(platform: str = sys.platform) -> HooksConfig:
    """Built-in hooks used when the user configured none."""
    if (sounds := system_sounds(platform)) is None:
        return HooksConfig()
    success, failure = SoundAction(path=sounds[0]), SoundAction(path=sounds[1])
    return HooksConfig(
        check_success=[success],
        check_failure=[failure],
        complete_success=[success],
        complete_failure=[failure],
    )


def resolve_hooks(
    config: Config, *, silent: bool = False, platform: str = sys.platform
) -> HooksConfig:
    """Pick the hooks to run.

    Configured hooks replace the built-in sounds entirely; events left
    unconfigured then stay quiet.
    """
    if silent:
        return HooksConfig()
    if not config.hooks.is_empty:
        return config.hooks
    return default_sound_hooks(platform)


@dataclass(frozen=True, kw_only=True)
class Notifier:
    """Facade the monitor reports outcomes to."""

    repository: str
    hooks: HookExecutor
    logger: logging.Logger = field(default=log, repr=False)

    async def notify_success(self, run: WorkflowRun) -> None:
        """A run completed successfully."""
        self.logger.info("✅ %s completed successfully", run.name)
        await self.hooks.execute(self._run_event("check_success", run))

    async def notify_failure(self, run: WorkflowRun) -> None:
        """A run completed with a failure."""
        self.logger.info("❌ %s failed", run.name)
        await self.hooks.execute(self._run_event("check_failure", run))

    async def notify_complete(self, summary: Summary) -> None:
        """Every run completed; blocks until the terminal hooks finished."""
        self.logger.info(
            "All workflows completed: total=%d success=%d failure=%d other=%d",
            summary.total_runs,
            summary.success_count,
            summary.failure_count,
            summary.other_count,
        )
        await self.hooks.execute(
            WorkflowEvent(
                kind="complete_success" if summary.succeeded else "complete_failure",
                repository=self.repository,
            )
        )

    async def wait_for_pending_actions(self) -> None:
        """Drain background actions; call once before the process exits."""
        await self.hooks.wait_for_completion()

    def _run_event(self, kind: HookEvent, run: WorkflowRun) -> WorkflowEvent:
        return WorkflowEvent(
            kind=kind,
            repository=self.repository,
            workflow=run.name,
            run_id=run.id,
            url=run.url,
        )
