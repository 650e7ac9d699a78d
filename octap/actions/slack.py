"""Slack action: post a message to an incoming webhook."""

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import aiohttp

from octap.actions.base import ActionExecutionError, ActionExecutor, expand_vars
from octap.models.action import SlackAction
from octap.models.event import WorkflowEvent
from octap.templating import TemplateError, render_template


class WebhookResponseError(ActionExecutionError):
    """The webhook answered with a non-200 status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Slack webhook returned status {status}: {body}")
        self.status = status

    @property
    def is_rate_limited(self) -> bool:
        """Slack asks us to slow down."""
        return self.status == 429

    @property
    def is_transient(self) -> bool:
        """Server side failure worth a second try."""
        return self.status >= 500


class WebhookConnectionError(ActionExecutionError):
    """The request never got an answer (network error, timeout)."""

    is_rate_limited = False
    is_transient = True


def mask_webhook_url(url: str) -> str:
    """Hide the secret parts of a webhook URL for logging.

    Slack URLs keep their shape with each of the last three path segments
    shortened; any other URL is truncated.
    """
    if "hooks.slack.com" in url:
        parts = url.split("/")
        if len(parts) > 3:
            for i in range(len(parts) - 3, len(parts)):
                if len(parts[i]) > 4:
                    parts[i] = parts[i][:2] + "***"
            return "/".join(parts)
    if len(url) > 20:
        return url[:20] + "***"
    return "***"


def build_payload(
    action: SlackAction, event: WorkflowEvent, message: str
) -> dict[str, Any]:
    """Build the webhook JSON body.

    With a color the message moves into a single attachment so Slack shows
    the colored bar; the top level text is then left empty.
    """
    payload: dict[str, Any] = {"text": message}
    if action.username:
        payload["username"] = action.username
    if action.icon_emoji:
        payload["icon_emoji"] = action.icon_emoji
    if action.color:
        payload["attachments"] = [
            {
                "color": action.color,
                "text": message,
                "footer": f"octap - {event.repository}",
                "ts": int(time.time()),
            }
        ]
        payload["text"] = ""
    return payload


@dataclass(frozen=True, kw_only=True)
class SlackActionExecutor(ActionExecutor[SlackAction]):
    """Sends Slack notifications with a small retry budget.

    Rate limiting (429) is retried with exponential backoff
    (``retry_delay``, then twice that); network errors and 5xx answers are
    retried once after ``retry_delay``; anything else gives up immediately.
    """

    max_attempts: int = 3
    retry_delay: float = 1.0
    request_timeout: float = 30.0

    async def execute(self, action: SlackAction, event: WorkflowEvent) -> None:
        """Render the message and post it."""
        webhook_url = expand_vars(action.webhook_url)
        if not webhook_url:
            raise ActionExecutionError("Slack webhook URL is empty after expansion")

        try:
            message = render_template(action.message, event)
        except TemplateError as exc:
            raise ActionExecutionError(f"Failed to render message: {exc}") from exc

        payload = build_payload(action, event, message)

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.request_timeout)
        ) as session:
            await self._send_with_retry(session, webhook_url, payload)

    async def _send_with_retry(
        self,
        session: aiohttp.ClientSession,
        webhook_url: str,
        payload: Mapping[str, Any],
    ) -> None:
        masked_url = mask_webhook_url(webhook_url)
        error: WebhookResponseError | WebhookConnectionError | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                await self._post(session, webhook_url, payload)
            except (WebhookResponseError, WebhookConnectionError) as exc:
                error = exc
            else:
                self.logger.debug(
                    "Slack notification sent: url=%s attempt=%d", masked_url, attempt
                )
                return

            if attempt == self.max_attempts:
                break

            if error.is_rate_limited:
                backoff = self.retry_delay * 2 ** (attempt - 1)
                self.logger.warning(
                    "Rate limited by Slack, retrying: url=%s attempt=%d backoff=%.1fs",
                    masked_url,
                    attempt,
                    backoff,
                )
                await asyncio.sleep(backoff)
                continue

            if error.is_transient and attempt == 1:
                self.logger.warning(
                    "Failed to send Slack notification, retrying: url=%s error=%s",
                    masked_url,
                    error,
                )
                await asyncio.sleep(self.retry_delay)
                continue

            break

        raise ActionExecutionError(
            f"Failed to send Slack notification to {masked_url}: {error}"
        ) from error

    async def _post(
        self,
        session: aiohttp.ClientSession,
        webhook_url: str,
        payload: Mapping[str, Any],
    ) -> None:
        self.logger.debug(
            "Sending to Slack: url=%s payload=%s",
            mask_webhook_url(webhook_url),
            payload,
        )
        try:
            async with session.post(webhook_url, json=payload) as response:
                if response.status != 200:
                    body = await response.text()
                    raise WebhookResponseError(response.status, body)
        except (aiohttp.ClientError, TimeoutError) as exc:
            detail = str(exc).replace(webhook_url, mask_webhook_url(webhook_url))
            raise WebhookConnectionError(f"{type(exc).__name__}: {detail}") from exc
