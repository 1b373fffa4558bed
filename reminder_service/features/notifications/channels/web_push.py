"""Web Push channel using VAPID via pywebpush.

pywebpush is synchronous (requests under the hood), so each send runs in a
worker thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING, Any

from pywebpush import WebPushException, webpush

from reminder_service.core.exceptions import DeliveryError
from reminder_service.features.notifications.channels.base import DeliveryResult, DeliveryStatus
from reminder_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pydantic import SecretStr

    from reminder_service.features.notifications.channels.base import NotificationMessage
    from reminder_service.features.notifications.models import NotificationSubscription

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)

# Push service responses meaning the subscription is gone for good
EXPIRED_STATUS_CODES = frozenset({404, 410})


def build_payload(message: NotificationMessage) -> dict[str, Any]:
    """JSON payload read by the service worker."""
    return {
        "title": message.title,
        "body": message.body,
        "reminder_id": str(message.reminder_id),
        "url": message.open_url,
        "actions": [{"label": action.label, "url": action.url} for action in message.actions],
    }


class WebPushChannel:
    """Deliver to browser push subscriptions.

    Args:
        vapid_public_key: Application server public key (configured check only)
        vapid_private_key: Key used to sign the VAPID JWT
        vapid_subject: ``mailto:`` or ``https:`` contact for the push service
        timeout: Per-request timeout in seconds
        on_expired: Called with the subscription when the push service
            answers 404/410, to deactivate it
    """

    channel_name = "web_push"

    def __init__(
        self,
        *,
        vapid_public_key: str | None,
        vapid_private_key: str | SecretStr | None,
        vapid_subject: str = "mailto:admin@flow.app",
        timeout: float = 10.0,
        on_expired: Callable[[NotificationSubscription], Awaitable[None]] | None = None,
    ) -> None:
        if vapid_private_key is not None and not isinstance(vapid_private_key, str):
            vapid_private_key = vapid_private_key.get_secret_value()
        self._public_key = vapid_public_key
        self._private_key = vapid_private_key
        self.vapid_subject = vapid_subject
        self.timeout = timeout
        self._on_expired = on_expired

    @property
    def configured(self) -> bool:
        return bool(self._public_key and self._private_key)

    def _result(self, subscription: NotificationSubscription, status: DeliveryStatus, **kwargs: Any) -> DeliveryResult:
        return DeliveryResult(channel=self.channel_name, status=status, subscription_id=subscription.id, **kwargs)

    async def deliver(
        self,
        subscription: NotificationSubscription,
        message: NotificationMessage,
    ) -> DeliveryResult:
        """Send one push message.

        Raises:
            DeliveryError: On push service errors other than 404/410.
        """
        if not self.configured:
            return self._result(
                subscription,
                DeliveryStatus.NOT_CONFIGURED,
                error_message="VAPID keys are not configured",
            )
        if not (subscription.endpoint and subscription.p256dh and subscription.auth):
            return self._result(
                subscription,
                DeliveryStatus.SKIPPED,
                error_message="Subscription is missing endpoint or keys",
            )

        subscription_info = {
            "endpoint": subscription.endpoint,
            "keys": {"p256dh": subscription.p256dh, "auth": subscription.auth},
        }
        data = json.dumps(build_payload(message), ensure_ascii=False)
        lazy_logger.debug(lambda: f"web_push.deliver: subscription={subscription.id}")

        start_time = time.perf_counter()
        try:
            await asyncio.to_thread(
                webpush,
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=self._private_key,
                vapid_claims={"sub": self.vapid_subject},
                timeout=self.timeout,
            )
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            if status_code in EXPIRED_STATUS_CODES:
                logger.info(
                    "Push subscription expired, deactivating",
                    extra={
                        "subscription_id": str(subscription.id),
                        "status_code": status_code,
                        "operation": "web_push.deliver",
                    },
                )
                if self._on_expired is not None:
                    await self._on_expired(subscription)
                return self._result(
                    subscription,
                    DeliveryStatus.EXPIRED,
                    status_code=status_code,
                    error_message=f"HTTP {status_code}",
                    response_time_ms=int((time.perf_counter() - start_time) * 1000),
                )
            raise DeliveryError(self.channel_name, str(e), status_code=status_code) from e

        return self._result(
            subscription,
            DeliveryStatus.DELIVERED,
            response_time_ms=int((time.perf_counter() - start_time) * 1000),
        )
