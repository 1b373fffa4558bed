"""Callback URLs embedded in notification action buttons."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode

from reminder_service.features.notifications.channels.base import NotificationAction

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from reminder_service.features.reminders.tokens import TokenAuthority

CALLBACK_PATH = "/api/snooze"
DONE_LABEL = "Done ✓"


class CallbackLinks:
    """Builds signed snooze and done URLs for a reminder.

    Example:
        links = CallbackLinks("https://flow.example.com", authority, [("10 min", 10)])
        links.snooze_url(reminder_id, 10)
        # https://flow.example.com/api/snooze?id=...&mins=10&token=...
    """

    def __init__(
        self,
        base_url: str,
        authority: TokenAuthority,
        snooze_options: Iterable[tuple[str, int]] = (("10 min", 10), ("1 hour", 60), ("Tomorrow", 1440)),
    ) -> None:
        self.callback_url = f"{base_url.rstrip('/')}{CALLBACK_PATH}"
        self._authority = authority
        self.snooze_options = tuple(snooze_options)

    def snooze_url(self, reminder_id: UUID, minutes: int) -> str:
        query = urlencode({"id": str(reminder_id), "mins": minutes, "token": self._authority.sign(reminder_id)})
        return f"{self.callback_url}?{query}"

    def done_url(self, reminder_id: UUID) -> str:
        query = urlencode({"id": str(reminder_id), "done": "true", "token": self._authority.sign(reminder_id)})
        return f"{self.callback_url}?{query}"

    def actions(self, reminder_id: UUID) -> tuple[NotificationAction, ...]:
        """Snooze options in configured order, then done."""
        snoozes = [NotificationAction(label, self.snooze_url(reminder_id, minutes)) for label, minutes in self.snooze_options]
        return (*snoozes, NotificationAction(DONE_LABEL, self.done_url(reminder_id)))
