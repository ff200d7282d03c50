"""
Notification channel senders.

Each channel is a ChannelSender: a named "deliver this message" capability
that raises DeliveryError on failure and returns None on success. Senders are
looked up by channel name in a ChannelRegistry; a name with no registered
sender raises UnsupportedChannelError.

Channels:
- email: SMTP via smtplib, settings from an explicit SmtpConfig
- sms: placeholder until a provider is integrated (logs, always succeeds)
- webhook: HTTP POST via requests, any non-2xx status is a failure
"""

from __future__ import annotations

import smtplib
from collections.abc import Iterable, Mapping
from datetime import datetime
from email.mime.text import MIMEText
from email.utils import format_datetime
from typing import Any, Protocol, runtime_checkable

import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential
from urllib3.exceptions import MaxRetryError, NewConnectionError

from actionq.actions.errors import DeliveryError, UnsupportedChannelError
from actionq.config import (
    DEFAULT_EMAIL_SUBJECT,
    WEBHOOK_MAX_ATTEMPTS,
    WEBHOOK_RETRY_MAX_WAIT,
    WEBHOOK_RETRY_MULTIPLIER,
    WEBHOOK_TIMEOUT_SECONDS,
    SmtpConfig,
)
from actionq.observability.logging import get_logger
from actionq.observability.telemetry import counter

logger = get_logger(__name__)


@runtime_checkable
class ChannelSender(Protocol):
    """Delivers one message over one channel."""

    name: str

    def send(self, message: str, params: Mapping[str, Any]) -> None: ...


def _required_str(params: Mapping[str, Any], key: str, channel: str) -> str:
    value = params.get(key)
    if not isinstance(value, str) or not value.strip():
        raise DeliveryError(f"{channel} channel requires a {key!r} parameter", channel=channel)
    return value.strip()


class EmailSender:
    """Sends a plaintext email per notification."""

    name = "email"

    def __init__(self, config: SmtpConfig):
        self.config = config
        if not config.host:
            logger.warning("SMTP host not configured; email notifications will fail")
        else:
            logger.info(
                "SMTP delivery configured: %s@%s:%s",
                config.user or "<anonymous>",
                config.host,
                config.port,
            )

    def build_message(self, to_email: str, message: str, subject: str) -> MIMEText:
        msg = MIMEText(message, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.config.sender_address or ""
        msg["To"] = to_email
        msg["Date"] = format_datetime(datetime.now().astimezone())
        return msg

    def send(self, message: str, params: Mapping[str, Any]) -> None:
        """
        Send message to params['to'].

        Args:
            message: Email body (plaintext)
            params: Must contain 'to'; optional 'subject'

        Raises:
            DeliveryError: Missing recipient, SMTP not configured, or SMTP failure
        """
        to_email = _required_str(params, "to", self.name)
        subject = params.get("subject")
        if not isinstance(subject, str) or not subject:
            subject = DEFAULT_EMAIL_SUBJECT

        if not self.config.host:
            raise DeliveryError("SMTP host not configured (set SMTP_HOST)", channel=self.name)

        msg = self.build_message(to_email, message, subject)

        try:
            with smtplib.SMTP(self.config.host, self.config.port) as server:
                if self.config.use_tls:
                    server.starttls()
                if self.config.has_credentials:
                    server.login(self.config.user, self.config.password)
                server.send_message(msg, from_addr=self.config.sender_address, to_addrs=[to_email])
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            raise DeliveryError(f"email delivery to {to_email} failed: {exc}", channel=self.name) from exc

        logger.info("Email notification sent to %s", to_email)


class SmsSender:
    """Placeholder channel: no SMS provider is integrated yet."""

    name = "sms"

    def send(self, message: str, params: Mapping[str, Any]) -> None:
        # TODO: call the SMS provider API once one is selected; params["phone"] is the recipient
        logger.info("SMS notification (not sent, no provider): %s", message)
        counter("notification.sms.placeholder")


def is_connect_failure(exc: BaseException) -> bool:
    """
    True when the request cannot have reached the endpoint.

    requests raises ConnectionError both for a refused or unresolvable host
    and for a connection dropped after the body was sent
    (ProtocolError/RemoteDisconnected). Only the first is safe to repeat.
    """
    if isinstance(exc, requests.exceptions.ConnectTimeout):
        return True
    if not isinstance(exc, requests.exceptions.ConnectionError):
        return False

    reason = exc.args[0] if exc.args else None
    if isinstance(reason, MaxRetryError):
        reason = reason.reason
    return isinstance(reason, NewConnectionError)


class WebhookSender:
    """POSTs {"message": ...} as JSON to params['url']."""

    name = "webhook"

    def __init__(
        self,
        max_attempts: int = WEBHOOK_MAX_ATTEMPTS,
        timeout: float | None = WEBHOOK_TIMEOUT_SECONDS,
        retry_multiplier: float = WEBHOOK_RETRY_MULTIPLIER,
        retry_max_wait: float = WEBHOOK_RETRY_MAX_WAIT,
    ):
        self.max_attempts = max(1, max_attempts)
        self.timeout = timeout
        self.retry_multiplier = retry_multiplier
        self.retry_max_wait = retry_max_wait

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_multiplier, max=self.retry_max_wait),
            retry=retry_if_exception(is_connect_failure),
            before_sleep=lambda state: logger.warning(
                "Webhook connection failed (attempt %d/%d), retrying",
                state.attempt_number,
                self.max_attempts,
            ),
            reraise=True,
        )

    def send(self, message: str, params: Mapping[str, Any]) -> None:
        """
        Raises:
            DeliveryError: Missing url, transport error, or non-2xx response
        """
        url = _required_str(params, "url", self.name)

        try:
            response = self._retrying()(
                requests.post, url, json={"message": message}, timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.error("Webhook request to %s failed: %s", url, exc)
            raise DeliveryError(f"webhook request to {url} failed: {exc}", channel=self.name) from exc

        if not 200 <= response.status_code < 300:
            logger.warning("Webhook %s responded with status %s", url, response.status_code)
            raise DeliveryError(
                f"webhook request to {url} failed with status {response.status_code}",
                channel=self.name,
            )

        logger.info("Webhook notification delivered to %s", url)


class ChannelRegistry:
    """Channel name -> sender lookup."""

    def __init__(self, senders: Iterable[ChannelSender] = ()):
        self._senders: dict[str, ChannelSender] = {}
        for sender in senders:
            self.register(sender)

    def register(self, sender: ChannelSender) -> None:
        self._senders[sender.name] = sender

    def get(self, channel: str) -> ChannelSender:
        """
        Raises:
            UnsupportedChannelError: If no sender is registered for channel
        """
        try:
            return self._senders[channel]
        except KeyError:
            raise UnsupportedChannelError(channel, supported=self.names()) from None

    def names(self) -> list[str]:
        return sorted(self._senders)

    def __contains__(self, channel: object) -> bool:
        return channel in self._senders


def build_default_registry(smtp_config: SmtpConfig | None = None) -> ChannelRegistry:
    """Registry with the email, sms and webhook senders."""
    return ChannelRegistry(
        [
            EmailSender(smtp_config or SmtpConfig.from_env()),
            SmsSender(),
            WebhookSender(),
        ]
    )
