"""Base service class for business logic."""

from __future__ import annotations

import logging

from reminder_service.infra.logging import get_lazy_logger


class BaseService:
    """Base class for service classes.

    Loggers:
        - self.logger: Standard logger for INFO/WARNING/ERROR
        - self._lazy: Lazy logger for DEBUG (message built only when enabled)

    Example:
        class ReminderScheduler(BaseService):
            def __init__(self, database: Database, store: JobStore):
                super().__init__()
                self.database = database

            async def cancel(self, reminder_id: UUID) -> bool:
                self.logger.info("Cancelling reminder", extra={"reminder_id": str(reminder_id)})
                ...
    """

    def __init__(self) -> None:
        class_name = self.__class__.__name__
        self.logger = logging.getLogger(class_name)
        self._lazy = get_lazy_logger(class_name)
