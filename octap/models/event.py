"""Hook events emitted towards configured actions."""

from dataclasses import dataclass
from typing import Literal

type HookEvent = Literal[
    "check_success",
    "check_failure",
    "complete_success",
    "complete_failure",
]

HOOK_EVENTS: tuple[HookEvent, ...] = (
    "check_success",
    "check_failure",
    "complete_success",
    "complete_failure",
)

TERMINAL_EVENTS: frozenset[HookEvent] = frozenset(
    ["complete_success", "complete_failure"]
)


@dataclass(frozen=True, kw_only=True)
class WorkflowEvent:
    """Information passed to every action fired for an event."""

    kind: HookEvent
    repository: str
    workflow: str = ""
    run_id: int = 0
    url: str = ""

    @property
    def is_terminal(self) -> bool:
        """Whether this event concludes monitoring of the commit."""
        return self.kind in TERMINAL_EVENTS
