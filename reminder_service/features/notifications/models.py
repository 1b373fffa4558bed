"""SQLAlchemy models for notification subscriptions."""

from __future__ import annotations

import enum
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from reminder_service.core.database import Base, TimestampMixin, string_enum


class SubscriptionType(str, enum.Enum):
    NTFY = "NTFY"
    WEB_PUSH = "WEB_PUSH"


class NotificationSubscription(Base, TimestampMixin):
    """A delivery target of one user.

    NTFY subscriptions use ``ntfy_topic``; WEB_PUSH subscriptions use
    ``endpoint``, ``p256dh`` and ``auth`` from the browser's PushSubscription.
    Inactive subscriptions are kept so a re-subscribe can reactivate them.
    """

    __tablename__ = "notification_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "endpoint", name="uq_notification_subscriptions_user_endpoint"),
        UniqueConstraint("user_id", "ntfy_topic", name="uq_notification_subscriptions_user_topic"),
        Index("ix_notification_subscriptions_user_active", "user_id", "active"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[SubscriptionType] = mapped_column(
        string_enum(SubscriptionType, "subscriptiontype"),
        nullable=False,
    )
    active: Mapped[bool] = mapped_column(Boolean(), default=True, nullable=False)

    # NTFY
    ntfy_topic: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # WEB_PUSH
    endpoint: Mapped[str | None] = mapped_column(Text(), nullable=True)
    p256dh: Mapped[str | None] = mapped_column(String(255), nullable=True)
    auth: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<NotificationSubscription(id={self.id}, type={self.type.value}, active={self.active})>"
