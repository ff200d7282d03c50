"""Centralized configuration for ActionQ.

Re-exports everything from actionq.infrastructure.settings, then adds typed
constants for the database, notification channels and webhook transport.
Environment variable overrides use safe defaults so the package imports
without extra configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from actionq.infrastructure.settings import *  # noqa: F401, F403

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("ACTIONQ_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("ACTIONQ_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("ACTIONQ_DB_CONNECT_TIMEOUT", "30.0"))
DB_RETRY_MAX: int = int(os.getenv("ACTIONQ_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("ACTIONQ_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("ACTIONQ_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("ACTIONQ_DB_RETRY_JITTER", "0.1"))

# --- Notifications ---
DEFAULT_EMAIL_SUBJECT: str = "System Notification"
SMTP_DEFAULT_PORT: int = 587

# --- Webhook transport ---
# Connection-level failures only; a non-2xx response is never retried.
WEBHOOK_MAX_ATTEMPTS: int = int(os.getenv("WEBHOOK_MAX_ATTEMPTS", "3"))
WEBHOOK_RETRY_MULTIPLIER: float = float(os.getenv("WEBHOOK_RETRY_MULTIPLIER", "0.5"))
WEBHOOK_RETRY_MAX_WAIT: float = float(os.getenv("WEBHOOK_RETRY_MAX_WAIT", "5.0"))
# Unset means no timeout: a hung endpoint blocks the action.
WEBHOOK_TIMEOUT_SECONDS: float | None = (
    float(os.environ["WEBHOOK_TIMEOUT_SECONDS"]) if os.getenv("WEBHOOK_TIMEOUT_SECONDS") else None
)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SmtpConfig:
    """SMTP transport settings handed to the email sender."""

    host: str | None
    port: int = SMTP_DEFAULT_PORT
    user: str | None = None
    password: str | None = None
    from_email: str | None = None
    use_tls: bool = True

    @property
    def sender_address(self) -> str | None:
        return self.from_email or self.user

    @property
    def has_credentials(self) -> bool:
        return bool(self.user and self.password)

    @classmethod
    def from_env(cls) -> SmtpConfig:
        """
        Build SMTP settings from the environment.

        Reads env vars at call time (not import time) so values loaded by
        ensure_env_loaded() after import are picked up.

        Environment variables:
        - SMTP_HOST: SMTP server hostname
        - SMTP_PORT: SMTP server port (default: 587)
        - SMTP_USER: SMTP username
        - SMTP_PASSWORD (or SMTP_PASS): SMTP password
        - SMTP_FROM_EMAIL: From address (default: SMTP_USER)
        - SMTP_USE_TLS: STARTTLS before login (default: true)
        """
        return cls(
            host=os.getenv("SMTP_HOST") or None,
            port=int(os.getenv("SMTP_PORT") or SMTP_DEFAULT_PORT),
            user=os.getenv("SMTP_USER") or None,
            password=os.getenv("SMTP_PASSWORD") or os.getenv("SMTP_PASS") or None,
            from_email=os.getenv("SMTP_FROM_EMAIL") or None,
            use_tls=_env_flag("SMTP_USE_TLS", "true"),
        )

    def describe(self) -> dict[str, object]:
        """Configuration status without the password."""
        return {
            "smtp_host": self.host,
            "smtp_port": self.port,
            "smtp_user": self.user,
            "smtp_password_set": bool(self.password),
            "from_email": self.sender_address,
            "use_tls": self.use_tls,
        }
