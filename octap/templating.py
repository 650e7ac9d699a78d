"""Rendering of ``{{.Field}}`` placeholders in action messages."""

import re
from collections.abc import Mapping
from datetime import datetime

from octap.models.event import WorkflowEvent

PLACEHOLDER = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")

TEMPLATE_FIELDS: frozenset[str] = frozenset(
    ["Repository", "Workflow", "RunID", "EventType", "RunURL", "URL", "Timestamp"]
)


class TemplateError(ValueError):
    """Raised when a template references an unknown field."""


def validate_template(template: str) -> str:
    """Check that every placeholder names a known field.

    Returns:
        The template unchanged, so it can be used as a pydantic validator.

    Raises:
        TemplateError: If an unknown field is referenced

    """
    names = {match.group(1) for match in PLACEHOLDER.finditer(template)}
    if unknown := sorted(names - TEMPLATE_FIELDS):
        raise TemplateError(
            f"Unknown template field(s): {', '.join(unknown)}. "
            f"Available fields: {', '.join(sorted(TEMPLATE_FIELDS))}"
        )
    return template


def template_values(
    event: WorkflowEvent, now: datetime | None = None
) -> Mapping[str, str]:
    """Values available to templates for an event."""
    timestamp = (now or datetime.now()).astimezone()
    return {
        "Repository": event.repository,
        "Workflow": event.workflow,
        "RunID": str(event.run_id),
        "EventType": event.kind,
        "RunURL": event.url,
        "URL": event.url,
        "Timestamp": timestamp.isoformat(timespec="seconds"),
    }


def render_template(
    template: str, event: WorkflowEvent, now: datetime | None = None
) -> str:
    """Substitute event values into ``template``."""
    values = template_values(event, now)

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in values:
            raise TemplateError(f"Unknown template field: {name}")
        return values[name]

    return PLACEHOLDER.sub(_substitute, template)
