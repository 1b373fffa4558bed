"""Subscription management for the notification feature."""

from __future__ import annotations

from typing import TYPE_CHECKING

from reminder_service.core.exceptions import NotFoundException
from reminder_service.core.services import BaseService
from reminder_service.features.notifications.metrics import subscriptions_deactivated_total
from reminder_service.features.notifications.repository import get_subscription_repository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from reminder_service.features.notifications.models import NotificationSubscription
    from reminder_service.features.notifications.repository import SubscriptionRepository
    from reminder_service.infra.database import Database


class SubscriptionService(BaseService):
    """Register and remove delivery targets for a user.

    Every method commits the session it is given.
    """

    def __init__(self, repository: SubscriptionRepository | None = None) -> None:
        super().__init__()
        self._repository = repository or get_subscription_repository()

    async def subscribe_web_push(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        endpoint: str,
        p256dh: str,
        auth: str,
    ) -> NotificationSubscription:
        subscription = await self._repository.upsert_web_push(
            session, user_id=user_id, endpoint=endpoint, p256dh=p256dh, auth=auth
        )
        await session.commit()
        self.logger.info(
            "Web Push subscription saved",
            extra={"user_id": user_id, "subscription_id": str(subscription.id), "operation": "subscriptions.web_push"},
        )
        return subscription

    async def unsubscribe_web_push(self, session: AsyncSession, *, user_id: str, endpoint: str) -> None:
        """Deactivate the user's subscription for ``endpoint``.

        Raises:
            NotFoundException: The user has no subscription for ``endpoint``.
        """
        changed = await self._repository.deactivate_endpoint(session, endpoint, user_id=user_id)
        if not changed:
            await session.rollback()
            raise NotFoundException("Subscription not found", type="subscription-not-found")
        await session.commit()

    async def subscribe_ntfy(self, session: AsyncSession, *, user_id: str, topic: str) -> NotificationSubscription:
        subscription = await self._repository.upsert_ntfy(session, user_id=user_id, topic=topic)
        await session.commit()
        self.logger.info(
            "ntfy subscription saved",
            extra={"user_id": user_id, "subscription_id": str(subscription.id), "operation": "subscriptions.ntfy"},
        )
        return subscription


class SubscriptionDeactivator:
    """``on_expired`` callback for push channels.

    Runs in its own session so it can be called from a delivery while no
    other session is open.
    """

    def __init__(self, database: Database, repository: SubscriptionRepository | None = None) -> None:
        self._database = database
        self._repository = repository or get_subscription_repository()

    async def __call__(self, subscription: NotificationSubscription) -> None:
        if not subscription.endpoint:
            return
        async with self._database.session() as session:
            changed = await self._repository.deactivate_endpoint(
                session, subscription.endpoint, user_id=subscription.user_id
            )
            await session.commit()
        if changed:
            subscriptions_deactivated_total.labels(channel="web_push").inc()
