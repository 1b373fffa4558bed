"""Service layer base classes."""

from reminder_service.core.services.base import BaseService

__all__ = ["BaseService"]
