"""FastAPI dependencies for the notifications feature."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from reminder_service.features.notifications.service import SubscriptionService


def get_subscription_service() -> SubscriptionService:
    return SubscriptionService()


SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]
