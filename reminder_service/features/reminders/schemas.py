"""Pydantic schemas for the reminders feature."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from reminder_service.features.reminders.models import ReminderStatus


class ReminderCreate(BaseModel):
    """Payload used when creating a reminder."""

    task_id: UUID
    trigger_at: datetime = Field(description="When to notify; naive values are read as UTC")

    @field_validator("trigger_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class ReminderResponse(BaseModel):
    """Representation returned from the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    task_id: UUID
    trigger_at: datetime
    status: ReminderStatus
    snoozed_until: datetime | None = None
    job_id: UUID | None = None


class CallbackResponse(BaseModel):
    """Body of every ``/api/snooze`` response, success or error."""

    success: bool
    error: str | None = None
    action: str | None = Field(default=None, description="``snoozed`` or ``done``")
    minutes: int | None = None
