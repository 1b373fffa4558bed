"""Caller identity for authenticated routes.

Login and sessions are handled upstream; the gateway forwards the
authenticated user as the ``X-User-Id`` header. Callback routes don't use
this dependency.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header

from reminder_service.core.exceptions import UnauthorizedException


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> str:
    """Authenticated user id.

    Raises:
        UnauthorizedException: The header is missing or blank.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise UnauthorizedException("Authentication required")
    return user_id


CurrentUserIdDep = Annotated[str, Depends(get_current_user_id)]
