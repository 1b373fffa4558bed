"""Concurrent fan-out of one message to many subscriptions."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from reminder_service.core.exceptions import DeliveryError
from reminder_service.features.notifications.channels.base import DeliveryResult, DeliveryStatus
from reminder_service.features.notifications.metrics import (
    notification_delivered_total,
    notification_delivery_duration_seconds,
)
from reminder_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from reminder_service.features.notifications.channels.base import ChannelDispatcher, NotificationMessage
    from reminder_service.features.notifications.models import NotificationSubscription, SubscriptionType

logger = logging.getLogger(__name__)
_lazy = get_lazy_logger(__name__)


class NotificationFanout:
    """Deliver a message to every subscription independently.

    Sends run concurrently, each bounded by ``timeout``. A failing or slow
    subscription produces a non-delivered result for itself only; nothing
    is raised to the caller.

    Example:
        fanout = NotificationFanout(
            {SubscriptionType.NTFY: NtfyChannel(), SubscriptionType.WEB_PUSH: web_push},
            timeout=10.0,
        )
        results = await fanout.deliver_all(subscriptions, message)
    """

    def __init__(
        self,
        channels: Mapping[SubscriptionType, ChannelDispatcher],
        *,
        timeout: float = 10.0,
    ) -> None:
        self._channels = dict(channels)
        self.timeout = timeout

    def channel_for(self, subscription: NotificationSubscription) -> ChannelDispatcher | None:
        return self._channels.get(subscription.type)

    async def deliver_all(
        self,
        subscriptions: Sequence[NotificationSubscription],
        message: NotificationMessage,
    ) -> list[DeliveryResult]:
        """Deliver to all subscriptions; one result per subscription, same order."""
        if not subscriptions:
            return []
        results = await asyncio.gather(*(self._deliver_one(sub, message) for sub in subscriptions))

        delivered = sum(1 for result in results if result.success)
        logger.info(
            "Notification fan-out finished",
            extra={
                "reminder_id": str(message.reminder_id),
                "subscriptions": len(results),
                "delivered": delivered,
                "operation": "notifications.fanout",
            },
        )
        return list(results)

    async def _deliver_one(
        self,
        subscription: NotificationSubscription,
        message: NotificationMessage,
    ) -> DeliveryResult:
        channel = self.channel_for(subscription)
        channel_name = channel.channel_name if channel is not None else subscription.type.value.lower()
        start_time = time.perf_counter()

        if channel is None:
            result = DeliveryResult(
                channel=channel_name,
                status=DeliveryStatus.SKIPPED,
                subscription_id=subscription.id,
                error_message="No channel registered for subscription type",
            )
        else:
            try:
                result = await asyncio.wait_for(channel.deliver(subscription, message), timeout=self.timeout)
            except TimeoutError:
                result = DeliveryResult(
                    channel=channel_name,
                    status=DeliveryStatus.TIMEOUT,
                    subscription_id=subscription.id,
                    error_message=f"Delivery timed out after {self.timeout}s",
                )
            except DeliveryError as e:
                result = DeliveryResult(
                    channel=channel_name,
                    status=DeliveryStatus.FAILED,
                    subscription_id=subscription.id,
                    status_code=e.status_code,
                    error_message=str(e),
                )
            except Exception as e:
                logger.exception(
                    "Unexpected error delivering notification",
                    extra={
                        "subscription_id": str(subscription.id),
                        "channel": channel_name,
                        "operation": "notifications.deliver",
                    },
                )
                result = DeliveryResult(
                    channel=channel_name,
                    status=DeliveryStatus.FAILED,
                    subscription_id=subscription.id,
                    error_message=f"{type(e).__name__}: {e}",
                )

        elapsed = time.perf_counter() - start_time
        notification_delivery_duration_seconds.labels(channel=channel_name).observe(elapsed)
        notification_delivered_total.labels(channel=channel_name, status=result.status.value).inc()

        if not result.success:
            logger.warning(
                "Notification not delivered",
                extra={
                    "subscription_id": str(subscription.id),
                    "channel": channel_name,
                    "status": result.status.value,
                    "error": result.error_message,
                    "operation": "notifications.deliver",
                },
            )
        else:
            _lazy.debug(lambda: f"notifications.deliver: {channel_name} -> {subscription.id} in {elapsed:.3f}s")
        return result
