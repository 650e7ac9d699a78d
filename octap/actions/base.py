"""Common pieces shared by action executors."""

import asyncio
import logging
import os
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field

from pydantic import BaseModel

from octap.models.event import WorkflowEvent

log = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r"\$(\w+|\{[^}]*\})", re.ASCII)


class ActionExecutionError(Exception):
    """Raised when an action could not perform its side effect."""


@dataclass(frozen=True, kw_only=True)
class ActionExecutor[A: BaseModel](ABC):
    """Performs one kind of action for an event.

    Executors raise ``ActionExecutionError`` on failure; the hook executor
    is responsible for containing and logging it.
    """

    logger: logging.Logger = field(default=log, repr=False)

    @abstractmethod
    async def execute(self, action: A, event: WorkflowEvent) -> None:
        """Run ``action`` for ``event``.

        Raises:
            ActionExecutionError: If the side effect failed

        """


def expand_vars(value: str, env: Mapping[str, str] | None = None) -> str:
    """Expand ``$VAR`` and ``${VAR}`` from ``env`` or the process environment.

    Unset variables are left untouched.
    """
    variables = os.environ if env is None else env

    def replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name.startswith("{"):
            name = name[1:-1]
        return variables.get(name, match.group(0))

    return VARIABLE_PATTERN.sub(replace, value)


def expand_path(value: str, env: Mapping[str, str] | None = None) -> str:
    """Expand variables and a leading ``~``."""
    return os.path.expanduser(expand_vars(value, env))


async def run_process(*argv: str) -> None:
    """Run a program to completion, failing on a non-zero exit status."""
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise ActionExecutionError(f"Failed to start {argv[0]}: {exc}") from exc

    _, stderr = await process.communicate()

    if process.returncode != 0:
        raise ActionExecutionError(
            f"{argv[0]} exited with status {process.returncode}: "
            f"{stderr.decode(errors='replace').strip()}"
        )
