"""Pydantic schemas for subscription endpoints."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class PushKeys(BaseModel):
    p256dh: str = Field(..., min_length=1, max_length=255)
    auth: str = Field(..., min_length=1, max_length=255)


class WebPushSubscribe(BaseModel):
    """Browser ``PushSubscription.toJSON()`` output."""

    endpoint: str = Field(..., min_length=1)
    keys: PushKeys


class WebPushUnsubscribe(BaseModel):
    endpoint: str = Field(..., min_length=1)


class NtfySubscribe(BaseModel):
    topic: str = Field(..., min_length=1, max_length=255, pattern=r"^[A-Za-z0-9_-]+$")


class SubscriptionCreated(BaseModel):
    id: UUID


class SubscriptionRemoved(BaseModel):
    success: bool = True
