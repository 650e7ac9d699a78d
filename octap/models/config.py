"""Models for the hooks configuration file."""

from collections.abc import Sequence

from pydantic import Field

from octap.models.action import Action
from octap.models.base import ConfigModel
from octap.models.event import HOOK_EVENTS, HookEvent


class HooksConfig(ConfigModel):
    """Ordered action lists keyed by hook event."""

    check_success: Sequence[Action] = Field(default_factory=tuple)
    check_failure: Sequence[Action] = Field(default_factory=tuple)
    complete_success: Sequence[Action] = Field(default_factory=tuple)
    complete_failure: Sequence[Action] = Field(default_factory=tuple)

    def actions_for(self, event: HookEvent) -> Sequence[Action]:
        """Return the actions configured for ``event``."""
        actions: Sequence[Action] = getattr(self, event)
        return actions

    @property
    def is_empty(self) -> bool:
        """True when no event has any action."""
        return not any(self.actions_for(event) for event in HOOK_EVENTS)


class Config(ConfigModel):
    """Top level configuration file."""

    hooks: HooksConfig = Field(default_factory=HooksConfig)
