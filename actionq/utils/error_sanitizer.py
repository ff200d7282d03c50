"""
Error message redaction for batch reports.

Sender and store errors are echoed into BatchReport entries and CLI output.
Webhook URLs can carry credentials (user:pass@host, ?token=...) and SMTP
errors can echo auth exchanges, so those fragments are masked before the
message leaves the process. The full error is still logged where it is raised.
"""

from __future__ import annotations

import re

MAX_ERROR_LENGTH = 500

REDACTION_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # user:password@ in URLs
    (re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/\s:@]+:[^/\s@]+@"), r"\g<scheme>[REDACTED]@"),
    # secrets in query strings
    (
        re.compile(r"(?P<key>[?&](?:token|key|api_key|apikey|secret|password|sig|signature)=)[^&\s]+", re.IGNORECASE),
        r"\g<key>[REDACTED]",
    ),
    (re.compile(r"Bearer [A-Za-z0-9._~+/=-]+"), "Bearer [REDACTED]"),
    # SMTP AUTH exchanges echo base64 credentials
    (re.compile(r"(AUTH (?:PLAIN|LOGIN)\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
]


def redact_error_message(message: str) -> str:
    """
    Mask credential-looking fragments and cap the length.

    Args:
        message: Raw error text

    Returns:
        Message safe to include in reports
    """
    if not message:
        return "An error occurred."

    for pattern, replacement in REDACTION_PATTERNS:
        message = pattern.sub(replacement, message)

    if len(message) > MAX_ERROR_LENGTH:
        message = message[: MAX_ERROR_LENGTH - 3] + "..."
    return message


def describe_exception(error: BaseException) -> str:
    """Redacted 'message' for ActionErrors, 'Type: message' for anything else."""
    from actionq.actions.errors import ActionError

    if isinstance(error, ActionError):
        return redact_error_message(error.message)
    return redact_error_message(f"{type(error).__name__}: {error}")
