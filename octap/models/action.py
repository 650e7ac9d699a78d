"""Models for hook actions declared in the configuration file."""

import re
from collections.abc import Sequence
from datetime import timedelta
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, Field, TypeAdapter, field_validator

from octap.models.base import ConfigModel
from octap.templating import validate_template

Template = Annotated[str, AfterValidator(validate_template)]

DEFAULT_COMMAND_TIMEOUT = timedelta(seconds=30)

DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Any) -> Any:
    """Accept Go style durations such as ``"30s"``, ``"1m30s"`` or ``"500ms"``.

    Anything that does not look like one is returned unchanged for pydantic
    to interpret (numbers of seconds, ISO 8601 durations).
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    parts = DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        return value
    return timedelta(
        seconds=sum(float(number) * DURATION_UNITS[unit] for number, unit in parts)
    )


class SoundAction(ConfigModel):
    """Play an audio file."""

    type: Literal["sound"] = "sound"
    path: str = Field(..., min_length=1, description="Sound file path")


class CommandAction(ConfigModel):
    """Run an executable with event details in its environment."""

    type: Literal["command"] = "command"
    command: str = Field(..., min_length=1, description="Executable to run")
    args: Sequence[str] = Field(default_factory=tuple, description="Arguments")
    timeout: timedelta = Field(
        default=DEFAULT_COMMAND_TIMEOUT,
        description="Maximum run time (e.g. 30s, 1m30s or a number of seconds)",
    )
    env: Sequence[str] = Field(
        default_factory=tuple,
        description="Extra environment variables in KEY=VALUE form",
    )

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> Any:
        return parse_duration(value)

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("timeout must be positive")
        return value

    @field_validator("env")
    @classmethod
    def _key_value_pairs(cls, value: Sequence[str]) -> Sequence[str]:
        for entry in value:
            key, sep, _ = entry.partition("=")
            if not sep or not key:
                raise ValueError(f"env entry must be KEY=VALUE, got {entry!r}")
        return tuple(value)


class SlackAction(ConfigModel):
    """Post a message to a Slack incoming webhook."""

    type: Literal["slack"] = "slack"
    webhook_url: str = Field(..., min_length=1, description="Incoming webhook URL")
    message: Template = Field(..., min_length=1, description="Message template")
    color: str | None = Field(
        default=None, description="Attachment color: good, warning, danger or #hex"
    )
    icon_emoji: str | None = Field(default=None, description="Sender icon (:emoji:)")
    username: str | None = Field(default=None, description="Sender name")


class NotifyAction(ConfigModel):
    """Show a desktop notification."""

    type: Literal["notify"] = "notify"
    title: Template = Field(default="octap", description="Title template")
    message: Template = Field(..., min_length=1, description="Message template")
    sound: bool | None = Field(
        default=None, description="Play a sound with the notification (macOS)"
    )


Action = Annotated[
    SoundAction | CommandAction | SlackAction | NotifyAction,
    Field(discriminator="type"),
]

action_adapter: TypeAdapter[Action] = TypeAdapter(Action)
