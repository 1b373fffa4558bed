"""Tests for the ntfy channel."""

from __future__ import annotations

import base64
from uuid import uuid4

import httpx
import pytest

from reminder_service.core.exceptions import DeliveryError
from reminder_service.features.notifications.channels import (
    DeliveryStatus,
    NotificationAction,
    NotificationMessage,
    NtfyChannel,
)
from reminder_service.features.notifications.channels.ntfy import encode_header, format_actions
from reminder_service.features.notifications.models import NotificationSubscription, SubscriptionType


def _subscription(topic: str | None = "flow-user-1") -> NotificationSubscription:
    return NotificationSubscription(id=uuid4(), user_id="user-1", type=SubscriptionType.NTFY, ntfy_topic=topic)


def _message() -> NotificationMessage:
    return NotificationMessage(
        title="Reminder",
        body="Write report\nWork · Due today",
        reminder_id=uuid4(),
        actions=(
            NotificationAction("10 min", "https://flow.test/api/snooze?id=1&mins=10&token=t"),
            NotificationAction("Done", "https://flow.test/api/snooze?id=1&done=true&token=t"),
        ),
    )


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def test_posts_body_to_topic_with_headers() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "abc"})

    subscription = _subscription()
    async with _client(handler) as client:
        result = await NtfyChannel("https://ntfy.example/", client=client).deliver(subscription, _message())

    assert result.status is DeliveryStatus.DELIVERED
    assert result.subscription_id == subscription.id
    assert result.status_code == 200
    [request] = requests
    assert request.method == "POST"
    assert str(request.url) == "https://ntfy.example/flow-user-1"
    assert request.content.decode() == "Write report\nWork · Due today"
    assert request.headers["Title"] == "Reminder"
    assert request.headers["Priority"] == "high"
    assert request.headers["Tags"] == "clipboard"
    assert request.headers["Actions"].startswith("http, 10 min, https://flow.test/api/snooze?")


async def test_topic_is_escaped_into_a_single_path_segment() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200)

    async with _client(handler) as client:
        await NtfyChannel("https://ntfy.example", client=client).deliver(_subscription("a/b?x=1"), _message())

    [request] = requests
    assert request.url.raw_path == b"/a%2Fb%3Fx%3D1"
    assert request.url.query == b""


async def test_non_2xx_is_failed_result() -> None:
    async with _client(lambda request: httpx.Response(429)) as client:
        result = await NtfyChannel(client=client).deliver(_subscription(), _message())

    assert result.status is DeliveryStatus.FAILED
    assert result.status_code == 429
    assert result.error_message == "HTTP 429"


async def test_transport_error_raises_delivery_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(DeliveryError, match="ntfy"):
            await NtfyChannel(client=client).deliver(_subscription(), _message())


async def test_subscription_without_topic_is_skipped() -> None:
    async with _client(lambda request: httpx.Response(200)) as client:
        result = await NtfyChannel(client=client).deliver(_subscription(topic=None), _message())

    assert result.status is DeliveryStatus.SKIPPED


def test_format_actions() -> None:
    actions = (NotificationAction("1 hour", "https://a/1"), NotificationAction("Done", "https://a/2"))

    assert format_actions(actions) == "http, 1 hour, https://a/1, clear=true; http, Done, https://a/2, clear=true"


def test_encode_header_leaves_ascii_alone() -> None:
    assert encode_header("Reminder") == "Reminder"


def test_encode_header_rfc2047_for_non_ascii() -> None:
    encoded = encode_header("Done ✓")

    assert encoded.startswith("=?UTF-8?B?")
    assert base64.b64decode(encoded[len("=?UTF-8?B?") : -2]).decode("utf-8") == "Done ✓"
