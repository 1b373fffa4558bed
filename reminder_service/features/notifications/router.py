"""API router for notification subscriptions."""

from __future__ import annotations

from fastapi import APIRouter

from reminder_service.core.dependencies import CurrentUserIdDep, DbSessionDep
from reminder_service.features.notifications.dependencies import SubscriptionServiceDep
from reminder_service.features.notifications.schemas import (
    NtfySubscribe,
    SubscriptionCreated,
    SubscriptionRemoved,
    WebPushSubscribe,
    WebPushUnsubscribe,
)

router = APIRouter(tags=["notifications"])


@router.post("/push/subscribe", response_model=SubscriptionCreated, summary="Register a Web Push subscription")
async def subscribe_web_push(
    payload: WebPushSubscribe,
    user_id: CurrentUserIdDep,
    session: DbSessionDep,
    service: SubscriptionServiceDep,
) -> SubscriptionCreated:
    subscription = await service.subscribe_web_push(
        session,
        user_id=user_id,
        endpoint=payload.endpoint,
        p256dh=payload.keys.p256dh,
        auth=payload.keys.auth,
    )
    return SubscriptionCreated(id=subscription.id)


@router.delete("/push/subscribe", response_model=SubscriptionRemoved, summary="Remove a Web Push subscription")
async def unsubscribe_web_push(
    payload: WebPushUnsubscribe,
    user_id: CurrentUserIdDep,
    session: DbSessionDep,
    service: SubscriptionServiceDep,
) -> SubscriptionRemoved:
    await service.unsubscribe_web_push(session, user_id=user_id, endpoint=payload.endpoint)
    return SubscriptionRemoved()


@router.post("/ntfy/subscribe", response_model=SubscriptionCreated, summary="Register an ntfy topic")
async def subscribe_ntfy(
    payload: NtfySubscribe,
    user_id: CurrentUserIdDep,
    session: DbSessionDep,
    service: SubscriptionServiceDep,
) -> SubscriptionCreated:
    subscription = await service.subscribe_ntfy(session, user_id=user_id, topic=payload.topic)
    return SubscriptionCreated(id=subscription.id)
