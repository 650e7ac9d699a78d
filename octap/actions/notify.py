"""Notify action: desktop notification through the platform's facility."""

import sys
from dataclasses import dataclass, field

from octap.actions.base import ActionExecutionError, ActionExecutor, run_process
from octap.models.action import NotifyAction
from octap.models.event import WorkflowEvent
from octap.templating import TemplateError, render_template

WINDOWS_BALLOON_SCRIPT = """
Add-Type -AssemblyName System.Windows.Forms
$notification = New-Object System.Windows.Forms.NotifyIcon
$notification.Icon = [System.Drawing.SystemIcons]::Information
$notification.BalloonTipIcon = 'Info'
$notification.BalloonTipTitle = '{title}'
$notification.BalloonTipText = '{message}'
$notification.Visible = $true
$notification.ShowBalloonTip(10000)
"""


def escape_applescript(value: str) -> str:
    """Escape a string for a double quoted AppleScript literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def escape_powershell(value: str) -> str:
    """Escape a string for a single quoted PowerShell literal."""
    return value.replace("'", "''")


@dataclass(frozen=True, kw_only=True)
class NotifyActionExecutor(ActionExecutor[NotifyAction]):
    """Pops up desktop notifications."""

    platform: str = field(default=sys.platform)

    async def execute(self, action: NotifyAction, event: WorkflowEvent) -> None:
        """Render title and message, then show the notification."""
        try:
            title = render_template(action.title, event)
            message = render_template(action.message, event)
        except TemplateError as exc:
            raise ActionExecutionError(f"Failed to render notification: {exc}") from exc

        if self.platform == "darwin":
            script = (
                f'display notification "{escape_applescript(message)}" '
                f'with title "{escape_applescript(title)}"'
            )
            # Tone defaults to on when unset.
            if action.sound is not False:
                script += ' sound name "Glass"'
            await run_process("osascript", "-e", script)
        elif self.platform.startswith("linux"):
            await run_process("notify-send", title, message)
        elif self.platform == "win32":
            script = WINDOWS_BALLOON_SCRIPT.format(
                title=escape_powershell(title), message=escape_powershell(message)
            )
            await run_process("powershell", "-Command", script)
        else:
            self.logger.warning(
                "Notifications not supported on this platform: %s", self.platform
            )
            return

        self.logger.debug("Notification sent: title=%s message=%s", title, message)
