"""Notification delivery and callback token settings.

Environment variables use NOTIFY_ prefix. The callback signing secret is
also accepted as SESSION_SECRET so existing deployments keep working.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationSettings(BaseSettings):
    """Channels, VAPID keys and the callback token secret."""

    # ──────────────────────────────────────────────────────────────
    # Callback tokens
    # ──────────────────────────────────────────────────────────────

    secret: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("NOTIFY_SECRET", "SESSION_SECRET"),
        description="Server secret used to sign reminder callback tokens",
    )

    # ──────────────────────────────────────────────────────────────
    # Message content
    # ──────────────────────────────────────────────────────────────

    notification_title: str = Field(
        default="Flow — Next Action",
        min_length=1,
        max_length=200,
        description="Title shown on every reminder notification",
    )

    snooze_options: list[tuple[str, int]] = Field(
        default=[("10 min", 10), ("1 hour", 60), ("Tomorrow", 1440)],
        description="(label, minutes) pairs rendered as snooze action buttons",
    )

    open_url_path: str = Field(
        default="/today",
        description="App path opened when the notification body is clicked",
    )

    # ──────────────────────────────────────────────────────────────
    # ntfy
    # ──────────────────────────────────────────────────────────────

    ntfy_base_url: str = Field(
        default="https://ntfy.sh",
        description="Base URL of the ntfy server",
    )

    # ──────────────────────────────────────────────────────────────
    # Web Push (VAPID)
    # ──────────────────────────────────────────────────────────────

    vapid_public_key: str | None = Field(default=None, description="VAPID public key")
    vapid_private_key: SecretStr | None = Field(default=None, description="VAPID private key")
    vapid_subject: str = Field(
        default="mailto:admin@flow.app",
        pattern=r"^(mailto:|https:).+",
        description="VAPID subject (mailto: or https: URI)",
    )

    # ──────────────────────────────────────────────────────────────
    # Delivery
    # ──────────────────────────────────────────────────────────────

    delivery_timeout_seconds: float = Field(
        default=10.0,
        ge=0.5,
        le=120.0,
        description="Upper bound for a single subscription delivery",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def web_push_configured(self) -> bool:
        """Check if VAPID keys are present."""
        return bool(self.vapid_public_key and self.vapid_private_key)

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )
