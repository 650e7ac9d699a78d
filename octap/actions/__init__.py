"""Executors for the configurable hook actions."""

import logging
from collections.abc import Mapping
from typing import Any

from octap.actions.base import ActionExecutionError, ActionExecutor
from octap.actions.command import CommandActionExecutor, CommandTimeoutError
from octap.actions.notify import NotifyActionExecutor
from octap.actions.slack import SlackActionExecutor
from octap.actions.sound import SoundActionExecutor


def default_executors(logger: logging.Logger) -> Mapping[str, ActionExecutor[Any]]:
    """Executor registry keyed by action ``type``."""
    return {
        "sound": SoundActionExecutor(logger=logger),
        "command": CommandActionExecutor(logger=logger),
        "slack": SlackActionExecutor(logger=logger),
        "notify": NotifyActionExecutor(logger=logger),
    }


__all__ = [
    "ActionExecutionError",
    "ActionExecutor",
    "CommandActionExecutor",
    "CommandTimeoutError",
    "NotifyActionExecutor",
    "SlackActionExecutor",
    "SoundActionExecutor",
    "default_executors",
]
