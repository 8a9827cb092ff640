"""Operational alerts for failed or blocked page conversions.

Alerts go to a chat webhook as JSON `{text, severity, notify}` and are always
written to the log as well. Sends run as background tasks; `drain` awaits
the ones still in flight at shutdown.
"""

import asyncio
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from pagerender.core.config import ALERT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class AlertPayload(BaseModel):
    text: str = Field(..., description="Alert message")
    severity: str = Field("error", description="'info', 'warning' or 'error'")
    notify: bool = Field(True, description="Page the on-call channel")


def format_page_context(team_id: str, version_id: str, page_number: int) -> str:
    return (
        f"`Metadata: {{teamId: {team_id}, documentVersionId: {version_id}, "
        f"pageNumber: {page_number}}}`"
    )


class AlertLogger:
    """Fire-and-forget alerts to a chat webhook.

    Without a webhook URL alerts are only written to the log. Delivery
    failures are logged and never raised to the caller.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = ALERT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client
        self._pending: set[asyncio.Task] = set()

        logger.info(f"AlertLogger initialized (webhook configured: {bool(url)})")

    def log(self, message: str, severity: str = "error", notify: bool = True) -> None:
        """Schedule delivery of an alert without waiting for it."""
        level = logging.ERROR if severity == "error" else logging.WARNING
        logger.log(level, f"[ALERT] {message}")

        if not self.url:
            return

        task = asyncio.get_running_loop().create_task(
            self.send(AlertPayload(text=message, severity=severity, notify=notify))
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send(self, payload: AlertPayload) -> int:
        """Deliver one alert.

        Returns:
            int: HTTP status code, or 0 if the connection failed
        """
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=payload.model_dump())
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload.model_dump())
            response.raise_for_status()
            return response.status_code
        except httpx.HTTPStatusError as e:
            logger.error(f"Alert webhook HTTP error: {e.response.status_code}")
            return e.response.status_code
        except httpx.HTTPError as e:
            logger.error(f"Alert webhook connection failed: {str(e)}")
            return 0

    async def drain(self) -> None:
        """Wait for alerts still in flight (shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
