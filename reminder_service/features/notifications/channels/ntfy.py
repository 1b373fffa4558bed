"""ntfy channel: HTTP POST to a topic on an ntfy server."""

from __future__ import annotations

import base64
import logging
import time
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from reminder_service.core.exceptions import DeliveryError
from reminder_service.features.notifications.channels.base import DeliveryResult, DeliveryStatus
from reminder_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from reminder_service.features.notifications.channels.base import NotificationAction, NotificationMessage
    from reminder_service.features.notifications.models import NotificationSubscription

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)


def encode_header(value: str) -> str:
    """RFC 2047 encode non-ASCII header values; ntfy decodes them."""
    if value.isascii():
        return value
    encoded = base64.b64encode(value.encode("utf-8")).decode("ascii")
    return f"=?UTF-8?B?{encoded}?="


def format_actions(actions: tuple[NotificationAction, ...]) -> str:
    """ntfy ``Actions`` header: ``http, <label>, <url>, clear=true`` joined by ``; ``."""
    return "; ".join(f"http, {action.label}, {action.url}, clear=true" for action in actions)


class NtfyChannel:
    """Deliver to ntfy topics.

    Example:
        channel = NtfyChannel("https://ntfy.sh", timeout=10.0)
        result = await channel.deliver(subscription, message)
    """

    channel_name = "ntfy"

    def __init__(
        self,
        base_url: str = "https://ntfy.sh",
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def build_headers(self, message: NotificationMessage) -> dict[str, str]:
        headers = {
            "Title": encode_header(message.title),
            "Priority": "high",
            "Tags": "clipboard",
        }
        if message.actions:
            headers["Actions"] = encode_header(format_actions(message.actions))
        return headers

    async def deliver(
        self,
        subscription: NotificationSubscription,
        message: NotificationMessage,
    ) -> DeliveryResult:
        """POST the message body to ``{base_url}/{topic}``.

        Raises:
            DeliveryError: On transport errors (connection refused, timeout).
        """
        if not subscription.ntfy_topic:
            return DeliveryResult(
                channel=self.channel_name,
                status=DeliveryStatus.SKIPPED,
                subscription_id=subscription.id,
                error_message="Subscription has no ntfy topic",
            )

        url = f"{self.base_url}/{quote(subscription.ntfy_topic, safe='')}"
        headers = self.build_headers(message)
        lazy_logger.debug(lambda: f"ntfy.deliver: subscription={subscription.id} url={url}")

        start_time = time.perf_counter()
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, content=message.body.encode("utf-8"), headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, content=message.body.encode("utf-8"), headers=headers)
        except httpx.HTTPError as e:
            raise DeliveryError(self.channel_name, f"{type(e).__name__}: {e}") from e

        response_time_ms = int((time.perf_counter() - start_time) * 1000)
        success = 200 <= response.status_code < 300
        if not success:
            logger.warning(
                "ntfy delivery failed with non-2xx status",
                extra={
                    "subscription_id": str(subscription.id),
                    "status_code": response.status_code,
                    "response_time_ms": response_time_ms,
                    "operation": "ntfy.deliver",
                },
            )

        return DeliveryResult(
            channel=self.channel_name,
            status=DeliveryStatus.DELIVERED if success else DeliveryStatus.FAILED,
            subscription_id=subscription.id,
            status_code=response.status_code,
            error_message=None if success else f"HTTP {response.status_code}",
            response_time_ms=response_time_ms,
        )
