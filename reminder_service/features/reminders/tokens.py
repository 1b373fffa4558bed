"""Capability tokens for reminder callback URLs.

Notification action buttons are clicked without a session, so each callback
URL carries ``token = HMAC-SHA256(secret, reminder_id)`` as hex. Holding the
token proves the link was issued by this server for that reminder.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import TYPE_CHECKING, Any

from reminder_service.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from uuid import UUID

    from pydantic import SecretStr


class TokenAuthority:
    """Signs and verifies reminder ids with a server secret.

    Example:
        authority = TokenAuthority("s3cret")
        token = authority.sign(reminder_id)
        assert authority.verify(reminder_id, token)
    """

    __slots__ = ("_key",)

    def __init__(self, secret: str | SecretStr | None) -> None:
        if secret is not None and not isinstance(secret, str):
            secret = secret.get_secret_value()
        if not secret:
            raise ConfigurationError("A callback token secret is required (NOTIFY_SECRET or SESSION_SECRET)")
        self._key = secret.encode("utf-8")

    def __repr__(self) -> str:
        return "TokenAuthority(secret=**********)"

    def sign(self, reminder_id: UUID | str) -> str:
        """Deterministic hex token for ``reminder_id``."""
        return hmac.new(self._key, str(reminder_id).encode("utf-8"), hashlib.sha256).hexdigest()

    def verify(self, reminder_id: UUID | str, token: Any) -> bool:
        """Constant-time check of ``token`` against ``sign(reminder_id)``."""
        if not isinstance(token, str) or not token:
            return False
        expected = self.sign(reminder_id)
        return hmac.compare_digest(expected.encode("ascii"), token.encode("utf-8"))
