"""Base protocol and types for notification channels."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from uuid import UUID

    from reminder_service.features.notifications.models import NotificationSubscription


class DeliveryStatus(str, enum.Enum):
    DELIVERED = "delivered"
    FAILED = "failed"
    EXPIRED = "expired"
    SKIPPED = "skipped"
    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class NotificationAction:
    """An action button that calls back into the service."""

    label: str
    url: str


@dataclass(frozen=True, slots=True)
class NotificationMessage:
    """Channel-independent content of one reminder notification.

    Attributes:
        title: Notification title
        body: Formatted task text (may span two lines)
        reminder_id: Reminder the notification belongs to
        open_url: App path or URL opened when the notification is clicked
        actions: Snooze and done callbacks, in display order
    """

    title: str
    body: str
    reminder_id: UUID
    open_url: str = "/today"
    actions: tuple[NotificationAction, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class DeliveryResult:
    """Result of delivering to one subscription.

    Attributes:
        channel: Channel name (ntfy, web_push)
        status: Outcome of the attempt
        subscription_id: Target subscription
        status_code: HTTP status returned by the push service, if any
        error_message: Error description if not delivered
        response_time_ms: Time taken for delivery in milliseconds
    """

    channel: str
    status: DeliveryStatus
    subscription_id: UUID | None = None
    status_code: int | None = None
    error_message: str | None = None
    response_time_ms: int | None = None

    @property
    def success(self) -> bool:
        return self.status is DeliveryStatus.DELIVERED


class ChannelDispatcher(Protocol):
    """Protocol for channel-specific delivery.

    Implementations return a DeliveryResult for expected failures (bad
    status codes, missing configuration) and may raise DeliveryError or any
    other exception for unexpected ones; the fan-out converts those.
    """

    channel_name: str

    async def deliver(
        self,
        subscription: NotificationSubscription,
        message: NotificationMessage,
    ) -> DeliveryResult:
        """Deliver ``message`` to ``subscription``."""
        ...
