"""Application exception classes.

Every exception raised toward the HTTP layer derives from ``AppException`` and
carries its status code, so the exception handlers can render it without
knowing the concrete type.
"""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message (rendered as ``error``).
        type: Error type identifier.
        title: Short, human-readable summary of the problem type.
        extra: Additional context-specific information about the error.

    Example:
        raise AppException(
            status_code=404,
            detail="Reminder not found",
            type="reminder-not-found",
            extra={"reminder_id": "abc123"},
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            409: "Conflict",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class BadRequestException(AppException):
    """Exception raised for malformed or semantically invalid requests."""

    def __init__(
        self,
        detail: str,
        type: str = "bad-request",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=400, detail=detail, type=type, title="Bad Request", extra=extra)


class UnauthorizedException(AppException):
    """Exception raised when the caller is not authenticated."""

    def __init__(
        self,
        detail: str = "Unauthorized",
        type: str = "unauthorized",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=401, detail=detail, type=type, title="Unauthorized", extra=extra)


class ForbiddenException(AppException):
    """Exception raised when the caller is known but not allowed."""

    def __init__(
        self,
        detail: str,
        type: str = "forbidden",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=403, detail=detail, type=type, title="Forbidden", extra=extra)


class NotFoundException(AppException):
    """Exception raised when a resource is not found.

    Example:
        raise NotFoundException(
            detail="Reminder not found",
            type="reminder-not-found",
            extra={"reminder_id": str(reminder_id)},
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "not-found",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=404, detail=detail, type=type, title="Not Found", extra=extra)


class ServiceUnavailableException(AppException):
    """Exception raised when a dependency is temporarily unavailable."""

    def __init__(
        self,
        detail: str,
        type: str = "service-unavailable",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type=type,
            title="Service Unavailable",
            extra=extra,
        )


# ============================================================================
# Reminder domain errors
# ============================================================================


class ValidationError(BadRequestException):
    """Input rejected by a reminder operation. Never retried."""

    def __init__(self, detail: str, extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail=detail, type="validation-error", extra=extra)


class AuthorizationError(ForbiddenException):
    """Callback token did not verify. The token and secret are never logged."""

    def __init__(self, detail: str = "Invalid token") -> None:
        super().__init__(detail=detail, type="invalid-token")


class TransientStoreError(ServiceUnavailableException):
    """Storage failure inside a job handler; the job store retries the job."""

    def __init__(self, detail: str, extra: dict[str, Any] | None = None) -> None:
        super().__init__(detail=detail, type="transient-store-error", extra=extra)


class DeliveryError(Exception):
    """A single subscription could not be delivered to.

    Raised inside channel implementations and converted to a failed
    ``DeliveryResult`` by the fan-out; it never reaches the job store.
    """

    def __init__(self, channel: str, message: str, *, status_code: int | None = None) -> None:
        self.channel = channel
        self.status_code = status_code
        super().__init__(f"{channel}: {message}")


class ConfigurationError(Exception):
    """Required configuration is missing or invalid."""


__all__ = [
    "AppException",
    "AuthorizationError",
    "BadRequestException",
    "ConfigurationError",
    "DeliveryError",
    "ForbiddenException",
    "NotFoundException",
    "ServiceUnavailableException",
    "TransientStoreError",
    "UnauthorizedException",
    "ValidationError",
]
