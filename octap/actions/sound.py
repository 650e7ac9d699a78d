"""Sound action: play an audio file with the platform's player."""

import sys
from dataclasses import dataclass, field

from octap.actions.base import (
    ActionExecutionError,
    ActionExecutor,
    expand_path,
    run_process,
)
from octap.models.action import SoundAction
from octap.models.event import WorkflowEvent


@dataclass(frozen=True, kw_only=True)
class SoundActionExecutor(ActionExecutor[SoundAction]):
    """Plays sound files; blocks until playback ends."""

    platform: str = field(default=sys.platform)

    async def execute(self, action: SoundAction, event: WorkflowEvent) -> None:
        """Play the configured file."""
        path = expand_path(action.path)

        if self.platform == "darwin":
            await run_process("afplay", path)
        elif self.platform.startswith("linux"):
            await self._play_linux(path)
        elif self.platform == "win32":
            script = f'(New-Object Media.SoundPlayer "{path}").PlaySync()'
            await run_process("powershell", "-Command", script)
        else:
            self.logger.warning(
                "Sound playback not supported on this platform: %s", self.platform
            )
            return

        self.logger.debug("Sound played: %s", path)

    async def _play_linux(self, path: str) -> None:
        """Try PulseAudio first, then ALSA."""
        try:
            await run_process("paplay", path)
            return
        except ActionExecutionError as exc:
            self.logger.debug("paplay failed, falling back to aplay: %s", exc)

        try:
            await run_process("aplay", path)
        except ActionExecutionError as exc:
            raise ActionExecutionError(
                f"Failed to play {path} with both paplay and aplay: {exc}"
            ) from exc
