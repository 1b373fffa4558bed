"""API router for the reminders feature.

``/snooze`` is called by notification action buttons without a session;
the token in the query string is its only authorization. Clients differ in
the verb they send, so GET and POST are handled identically.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Request, status

from reminder_service.core.dependencies import CurrentUserIdDep, DbSessionDep
from reminder_service.core.exceptions import (
    AuthorizationError,
    BadRequestException,
    NotFoundException,
    ValidationError,
)
from reminder_service.features.reminders.dependencies import ReminderSchedulerDep, TokenAuthorityDep
from reminder_service.features.reminders.repository import get_reminder_repository
from reminder_service.features.reminders.scheduler import INVALID_MINUTES
from reminder_service.features.reminders.schemas import CallbackResponse, ReminderCreate, ReminderResponse
from reminder_service.infra.logging import get_lazy_logger, set_log_context

router = APIRouter(tags=["reminders"])

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)


def _parse_minutes(raw: str) -> int:
    try:
        minutes = int(raw.strip())
    except ValueError:
        raise ValidationError(INVALID_MINUTES) from None
    if minutes <= 0:
        raise ValidationError(INVALID_MINUTES)
    return minutes


@router.api_route(
    "/snooze",
    methods=["GET", "POST"],
    response_model=CallbackResponse,
    response_model_exclude_none=True,
    summary="Snooze or complete a reminder from a notification",
    responses={
        400: {"model": CallbackResponse, "description": "Missing or invalid parameter"},
        403: {"model": CallbackResponse, "description": "Invalid token"},
        404: {"model": CallbackResponse, "description": "Reminder not found"},
    },
)
async def snooze_callback(
    request: Request,
    session: DbSessionDep,
    scheduler: ReminderSchedulerDep,
    authority: TokenAuthorityDep,
) -> CallbackResponse:
    """Apply a snooze (``mins``) or done (``done=true``) action.

    Query params:
        id: Reminder id.
        token: Callback token for ``id``.
        mins: Minutes to snooze.
        done: ``true`` to dismiss the reminder and complete its task.
    """
    params = request.query_params
    reminder_id_raw = params.get("id")
    token = params.get("token")
    mins = params.get("mins")
    done = params.get("done") == "true"

    if not reminder_id_raw:
        raise BadRequestException("Missing required parameter: id")
    if not token:
        raise BadRequestException("Missing required parameter: token")
    if not authority.verify(reminder_id_raw, token):
        logger.warning(
            "Callback token rejected",
            extra={"reminder_id": reminder_id_raw, "operation": "reminders.callback"},
        )
        raise AuthorizationError()
    if not mins and not done:
        raise BadRequestException("Missing action parameter: mins or done")

    set_log_context(reminder_id=reminder_id_raw)
    try:
        reminder_id = UUID(reminder_id_raw)
    except ValueError:
        raise NotFoundException("Reminder not found") from None
    if await get_reminder_repository().get(session, reminder_id) is None:
        raise NotFoundException("Reminder not found")
    # Scheduler operations open their own sessions
    await session.close()

    if done:
        await scheduler.dismiss(reminder_id)
        return CallbackResponse(success=True, action="done")

    minutes = _parse_minutes(mins or "")
    await scheduler.reschedule(reminder_id, minutes)
    lazy_logger.debug(lambda: f"reminders.callback: {reminder_id} snoozed {minutes}m via {request.method}")
    return CallbackResponse(success=True, action="snoozed", minutes=minutes)


@router.post(
    "/reminders",
    response_model=ReminderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a reminder for a task",
)
async def create_reminder(
    payload: ReminderCreate,
    user_id: CurrentUserIdDep,
    scheduler: ReminderSchedulerDep,
) -> ReminderResponse:
    reminder = await scheduler.create_reminder(payload.task_id, payload.trigger_at, user_id=user_id)
    return ReminderResponse.model_validate(reminder)
