"""Notification channels and fan-out."""

from reminder_service.features.notifications.channels.base import (
    ChannelDispatcher,
    DeliveryResult,
    DeliveryStatus,
    NotificationAction,
    NotificationMessage,
)
from reminder_service.features.notifications.channels.dispatcher import NotificationFanout
from reminder_service.features.notifications.channels.ntfy import NtfyChannel
from reminder_service.features.notifications.channels.web_push import WebPushChannel

__all__ = [
    "ChannelDispatcher",
    "DeliveryResult",
    "DeliveryStatus",
    "NotificationAction",
    "NotificationFanout",
    "NotificationMessage",
    "NtfyChannel",
    "WebPushChannel",
]
