"""Repository for notification subscriptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from reminder_service.core.database import BaseRepository, utcnow
from reminder_service.features.notifications.models import NotificationSubscription, SubscriptionType

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


class SubscriptionRepository(BaseRepository[NotificationSubscription]):
    """Subscription lookups and upserts.

    Upserts are keyed by (user, endpoint) for Web Push and (user, topic)
    for ntfy; the caller commits.
    """

    def __init__(self) -> None:
        super().__init__(NotificationSubscription)

    async def list_active(self, session: AsyncSession, user_id: str) -> Sequence[NotificationSubscription]:
        """Active subscriptions of ``user_id``, oldest first."""
        stmt = (
            select(NotificationSubscription)
            .where(
                NotificationSubscription.user_id == user_id,
                NotificationSubscription.active.is_(True),
            )
            .order_by(NotificationSubscription.created_at)
        )
        result = await session.execute(stmt)
        items = result.scalars().all()

        self._lazy.debug(lambda: f"db.list_active: user={user_id} -> {len(items)} subscriptions")
        return items

    async def find_web_push(
        self, session: AsyncSession, user_id: str, endpoint: str
    ) -> NotificationSubscription | None:
        stmt = select(NotificationSubscription).where(
            NotificationSubscription.user_id == user_id,
            NotificationSubscription.endpoint == endpoint,
        )
        return (await session.execute(stmt)).scalar_one_or_none()

    async def upsert_web_push(
        self,
        session: AsyncSession,
        *,
        user_id: str,
        endpoint: str,
        p256dh: str,
        auth: str,
    ) -> NotificationSubscription:
        """Create or refresh a Web Push subscription and mark it active."""
        subscription = await self.find_web_push(session, user_id, endpoint)
        if subscription is None:
            subscription = NotificationSubscription(
                user_id=user_id,
                type=SubscriptionType.WEB_PUSH,
                endpoint=endpoint,
                p256dh=p256dh,
                auth=auth,
                active=True,
            )
            return await self.create(session, subscription)

        subscription.p256dh = p256dh
        subscription.auth = auth
        subscription.active = True
        await session.flush()
        return subscription

    async def upsert_ntfy(self, session: AsyncSession, *, user_id: str, topic: str) -> NotificationSubscription:
        """Create or reactivate an ntfy topic subscription."""
        stmt = select(NotificationSubscription).where(
            NotificationSubscription.user_id == user_id,
            NotificationSubscription.ntfy_topic == topic,
        )
        subscription = (await session.execute(stmt)).scalar_one_or_none()
        if subscription is None:
            subscription = NotificationSubscription(
                user_id=user_id,
                type=SubscriptionType.NTFY,
                ntfy_topic=topic,
                active=True,
            )
            return await self.create(session, subscription)

        subscription.active = True
        await session.flush()
        return subscription

    async def deactivate_endpoint(self, session: AsyncSession, endpoint: str, *, user_id: str | None = None) -> int:
        """Deactivate every subscription for ``endpoint``. Returns rows changed."""
        stmt = (
            update(NotificationSubscription)
            .where(NotificationSubscription.endpoint == endpoint)
            .values(active=False, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if user_id is not None:
            stmt = stmt.where(NotificationSubscription.user_id == user_id)
        result = await session.execute(stmt)

        self._logger.info(
            "Push subscription deactivated",
            extra={"count": result.rowcount, "operation": "subscriptions.deactivate"},
        )
        return result.rowcount


_subscription_repository: SubscriptionRepository | None = None


def get_subscription_repository() -> SubscriptionRepository:
    """Get the shared SubscriptionRepository instance."""
    global _subscription_repository
    if _subscription_repository is None:
        _subscription_repository = SubscriptionRepository()
    return _subscription_repository
