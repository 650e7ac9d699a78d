"""Command action: run an executable with event details in its environment."""

import asyncio
import contextlib
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from octap.actions.base import (
    ActionExecutionError,
    ActionExecutor,
    expand_path,
    expand_vars,
)
from octap.models.action import CommandAction
from octap.models.event import WorkflowEvent


class CommandTimeoutError(ActionExecutionError):
    """Raised when a command outlives its timeout and gets killed."""


def event_environment(event: WorkflowEvent) -> Mapping[str, str]:
    """Variables describing the event, exported to every command."""
    return {
        "OCTAP_EVENT_TYPE": event.kind,
        "OCTAP_REPOSITORY": event.repository,
        "OCTAP_WORKFLOW": event.workflow,
        "OCTAP_RUN_ID": str(event.run_id),
        "OCTAP_RUN_URL": event.url,
    }


def build_environment(
    action: CommandAction,
    event: WorkflowEvent,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge host, event and user variables; later sources win."""
    env = dict(os.environ if base is None else base)
    env.update(event_environment(event))
    for entry in action.env:
        key, _, value = entry.partition("=")
        env[key] = value
    return env


@dataclass(frozen=True, kw_only=True)
class CommandActionExecutor(ActionExecutor[CommandAction]):
    """Runs configured commands under a timeout."""

    platform: str = field(default=sys.platform)

    def build_argv(
        self, action: CommandAction, env: Mapping[str, str] | None = None
    ) -> Sequence[str]:
        """Expand variables from ``env`` and wrap PowerShell scripts on Windows."""
        command = expand_path(action.command, env)
        args = [expand_vars(arg, env) for arg in action.args]

        if self.platform == "win32" and command.lower().endswith(".ps1"):
            return [
                "powershell",
                "-ExecutionPolicy",
                "Bypass",
                "-File",
                command,
                *args,
            ]
        return [command, *args]

    async def execute(self, action: CommandAction, event: WorkflowEvent) -> None:
        """Run the command and wait for it to exit."""
        env = build_environment(action, event)
        argv = self.build_argv(action, env)
        timeout = action.timeout.total_seconds()

        self.logger.debug("Executing command: argv=%s timeout=%.1fs", argv, timeout)

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ActionExecutionError(
                f"Failed to start command {argv[0]}: {exc}"
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
        except TimeoutError:
            await _kill(process)
            raise CommandTimeoutError(
                f"Command {argv[0]} timed out after {timeout:g}s"
            ) from None
        except asyncio.CancelledError:
            await _kill(process)
            raise

        out = stdout.decode(errors="replace")
        err = stderr.decode(errors="replace")
        if out:
            self.logger.debug("Command %s stdout: %s", argv[0], out)
        if err:
            self.logger.debug("Command %s stderr: %s", argv[0], err)

        if process.returncode != 0:
            message = f"Command {argv[0]} exited with status {process.returncode}"
            if err:
                message += f", stderr: {err.strip()}"
            raise ActionExecutionError(message)

        self.logger.debug("Command executed successfully: %s", argv[0])


async def _kill(process: asyncio.subprocess.Process) -> None:
    with contextlib.suppress(ProcessLookupError):
        process.kill()
    await process.wait()
