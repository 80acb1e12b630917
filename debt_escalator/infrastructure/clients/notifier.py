"""Mail relay client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from debt_escalator.config import settings
from debt_escalator.domain.exceptions import DeliveryError
from debt_escalator.infrastructure.observability.metrics import (
    notification_counter,
    notification_latency_histogram,
)

logger = logging.getLogger(__name__)


class NotifierClient:
    """Hands rendered messages to the mail relay. Never raises to the caller."""

    def __init__(
        self,
        webhook_url: str | None = None,
        sender: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = settings.notifier_webhook_url if webhook_url is None else webhook_url
        self.sender = sender or settings.notifier_sender
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.notifier_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.notifier_backoff_base
        self.transport = transport

    async def send(self, destination: str, subject: str, body: str) -> bool:
        """
        Deliver one message, fire-and-forget.

        Failures are logged and counted; the return value only reports whether
        the relay accepted the message.
        """
        if not self.webhook_url:
            notification_counter.labels(outcome="disabled").inc()
            logger.info("Mail relay disabled, message dropped", extra={"to": destination, "subject": subject})
            return False

        payload = {"from": self.sender, "to": destination, "subject": subject, "text": body}
        try:
            message_id = await self._deliver(payload)
        except DeliveryError as e:
            notification_counter.labels(outcome="failed").inc()
            logger.error(f"Notification failed: {e}", extra={"to": destination, "subject": subject})
            return False

        notification_counter.labels(outcome="sent").inc()
        logger.info("Notification sent", extra={"to": destination, "subject": subject, "message_id": message_id})
        return True

    async def _deliver(self, payload: Dict[str, Any]) -> str | None:
        """
        POST the message with retry logic.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt-1)
        - Retries on HTTP errors and network failures

        Raises:
            DeliveryError: After the last attempt fails
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with notification_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                    try:
                        data = response.json()
                    except ValueError:
                        return None
                    return data.get("message_id") if isinstance(data, dict) else None

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise DeliveryError(f"Mail relay unavailable after {attempt} attempts: {e}") from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
