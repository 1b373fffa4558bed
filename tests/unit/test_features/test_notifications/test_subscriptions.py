"""Tests for subscription management and expired push cleanup."""

from __future__ import annotations

import pytest

from reminder_service.core.exceptions import NotFoundException
from reminder_service.features.notifications.models import NotificationSubscription, SubscriptionType
from reminder_service.features.notifications.repository import get_subscription_repository
from reminder_service.features.notifications.service import SubscriptionDeactivator, SubscriptionService

ENDPOINT = "https://push.example/send/abc"


@pytest.fixture
def service() -> SubscriptionService:
    return SubscriptionService()


async def _get(database, subscription_id) -> NotificationSubscription:
    async with database.session() as session:
        return await session.get(NotificationSubscription, subscription_id)


async def test_subscribe_web_push_is_an_upsert(service: SubscriptionService, database) -> None:
    async with database.session() as session:
        first = await service.subscribe_web_push(session, user_id="user-1", endpoint=ENDPOINT, p256dh="k1", auth="a1")
    async with database.session() as session:
        second = await service.subscribe_web_push(session, user_id="user-1", endpoint=ENDPOINT, p256dh="k2", auth="a2")

    assert second.id == first.id
    stored = await _get(database, first.id)
    assert stored.type is SubscriptionType.WEB_PUSH
    assert (stored.p256dh, stored.auth, stored.active) == ("k2", "a2", True)


async def test_unsubscribe_then_resubscribe_reactivates(service: SubscriptionService, database) -> None:
    async with database.session() as session:
        created = await service.subscribe_web_push(session, user_id="user-1", endpoint=ENDPOINT, p256dh="k", auth="a")
    async with database.session() as session:
        await service.unsubscribe_web_push(session, user_id="user-1", endpoint=ENDPOINT)
    assert (await _get(database, created.id)).active is False

    async with database.session() as session:
        await service.subscribe_web_push(session, user_id="user-1", endpoint=ENDPOINT, p256dh="k", auth="a")

    assert (await _get(database, created.id)).active is True


async def test_unsubscribe_unknown_endpoint(service: SubscriptionService, database) -> None:
    async with database.session() as session:
        with pytest.raises(NotFoundException, match="Subscription not found"):
            await service.unsubscribe_web_push(session, user_id="user-1", endpoint=ENDPOINT)


async def test_unsubscribe_only_touches_own_subscription(service: SubscriptionService, database) -> None:
    async with database.session() as session:
        other = await service.subscribe_web_push(session, user_id="user-2", endpoint=ENDPOINT, p256dh="k", auth="a")

    async with database.session() as session:
        with pytest.raises(NotFoundException):
            await service.unsubscribe_web_push(session, user_id="user-1", endpoint=ENDPOINT)

    assert (await _get(database, other.id)).active is True


async def test_subscribe_ntfy_is_an_upsert(service: SubscriptionService, database) -> None:
    async with database.session() as session:
        first = await service.subscribe_ntfy(session, user_id="user-1", topic="flow-abc")
    async with database.session() as session:
        second = await service.subscribe_ntfy(session, user_id="user-1", topic="flow-abc")

    assert first.id == second.id
    async with database.session() as session:
        active = await get_subscription_repository().list_active(session, "user-1")
    assert [sub.ntfy_topic for sub in active] == ["flow-abc"]


async def test_deactivator_deactivates_expired_endpoint(database, make_subscription) -> None:
    subscription = await make_subscription(type=SubscriptionType.WEB_PUSH, endpoint=ENDPOINT)

    await SubscriptionDeactivator(database)(subscription)

    assert (await _get(database, subscription.id)).active is False
    async with database.session() as session:
        assert await get_subscription_repository().list_active(session, "user-1") == []
