"""FastAPI dependencies for the reminders feature.

The scheduler and token authority are built once by the app lifespan and
kept on ``app.state``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from reminder_service.features.reminders.scheduler import ReminderScheduler
from reminder_service.features.reminders.tokens import TokenAuthority


def get_reminder_scheduler(request: Request) -> ReminderScheduler:
    return request.app.state.reminder_scheduler


def get_token_authority(request: Request) -> TokenAuthority:
    return request.app.state.token_authority


ReminderSchedulerDep = Annotated[ReminderScheduler, Depends(get_reminder_scheduler)]
TokenAuthorityDep = Annotated[TokenAuthority, Depends(get_token_authority)]
