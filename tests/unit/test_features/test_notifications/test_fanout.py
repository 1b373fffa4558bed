"""Tests for concurrent notification fan-out."""

from __future__ import annotations

from uuid import uuid4

from reminder_service.core.exceptions import DeliveryError
from reminder_service.features.notifications.channels import DeliveryStatus, NotificationFanout, NotificationMessage
from reminder_service.features.notifications.models import NotificationSubscription, SubscriptionType


def _subscription(type: SubscriptionType = SubscriptionType.NTFY) -> NotificationSubscription:
    return NotificationSubscription(id=uuid4(), user_id="user-1", type=type, ntfy_topic="t")


def _message() -> NotificationMessage:
    return NotificationMessage(title="Reminder", body="Write report", reminder_id=uuid4())


async def test_one_result_per_subscription_in_order(fanout: NotificationFanout, ntfy_channel, web_push_channel) -> None:
    subscriptions = [_subscription(), _subscription(SubscriptionType.WEB_PUSH), _subscription()]

    results = await fanout.deliver_all(subscriptions, _message())

    assert [result.subscription_id for result in results] == [sub.id for sub in subscriptions]
    assert all(result.success for result in results)
    assert len(ntfy_channel.deliveries) == 2
    assert len(web_push_channel.deliveries) == 1


async def test_empty_subscription_list(fanout: NotificationFanout) -> None:
    assert await fanout.deliver_all([], _message()) == []


async def test_slow_channel_times_out_alone(fanout: NotificationFanout, ntfy_channel, web_push_channel) -> None:
    web_push_channel.delay = 5.0
    ntfy, push = _subscription(), _subscription(SubscriptionType.WEB_PUSH)

    results = await fanout.deliver_all([ntfy, push], _message())

    assert [result.status for result in results] == [DeliveryStatus.DELIVERED, DeliveryStatus.TIMEOUT]
    assert len(ntfy_channel.deliveries) == 1


async def test_delivery_error_becomes_failed_result(fanout: NotificationFanout, ntfy_channel) -> None:
    ntfy_channel.error = DeliveryError("ntfy", "HTTP 503", status_code=503)

    [result] = await fanout.deliver_all([_subscription()], _message())

    assert result.status is DeliveryStatus.FAILED
    assert result.status_code == 503
    assert "HTTP 503" in result.error_message


async def test_unexpected_exception_becomes_failed_result(fanout: NotificationFanout, ntfy_channel) -> None:
    ntfy_channel.error = KeyError("endpoint")

    [result] = await fanout.deliver_all([_subscription()], _message())

    assert result.status is DeliveryStatus.FAILED
    assert result.error_message.startswith("KeyError")


async def test_unknown_subscription_type_is_skipped(ntfy_channel) -> None:
    fanout = NotificationFanout({SubscriptionType.NTFY: ntfy_channel})

    [result] = await fanout.deliver_all([_subscription(SubscriptionType.WEB_PUSH)], _message())

    assert result.status is DeliveryStatus.SKIPPED
    assert result.channel == "web_push"
