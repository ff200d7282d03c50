"""
Error kinds raised while applying actions.

Every error carries a machine-readable ``kind`` so batch reports can attribute
failures without parsing messages:

- unresolved_action: no handler for the (type, target) pair
- parameter_validation: missing or mistyped required parameter
- delivery_failure: a channel sender reported failure (or the channel is unknown)
- persistence_failure: a record-store write failed
"""

from __future__ import annotations


class ActionError(Exception):
    """Base class for failures attributable to a single action."""

    kind: str = "action_error"

    def __init__(self, message: str, *, action_type: str | None = None, target: str | None = None):
        super().__init__(message)
        self.message = message
        self.action_type = action_type
        self.target = target


class UnresolvedActionError(ActionError):
    """The action's type, or its target within a known type, has no handler."""

    kind = "unresolved_action"

    def __init__(self, discriminator: str, value: str, *, action_type: str | None = None):
        super().__init__(
            f"no such action: unknown {discriminator} {value!r}",
            action_type=action_type,
            target=value if discriminator == "target" else None,
        )
        self.discriminator = discriminator
        self.value = value


class ParameterValidationError(ActionError):
    kind = "parameter_validation"

    def __init__(
        self,
        message: str,
        *,
        fields: list[str] | None = None,
        action_type: str | None = None,
        target: str | None = None,
    ):
        super().__init__(message, action_type=action_type, target=target)
        self.fields = fields or []


class DeliveryError(ActionError):
    """A notification could not be delivered through its channel."""

    kind = "delivery_failure"

    def __init__(self, message: str, *, channel: str | None = None, notification_id: int | None = None):
        super().__init__(message, action_type="notification")
        self.channel = channel
        self.notification_id = notification_id


class UnsupportedChannelError(DeliveryError):
    def __init__(self, channel: str, supported: list[str] | None = None):
        detail = f" (supported: {', '.join(supported)})" if supported else ""
        super().__init__(f"unsupported channel: {channel!r}{detail}", channel=channel)


class PersistenceError(ActionError):
    """A record-store read or write failed."""

    kind = "persistence_failure"

    def __init__(self, message: str, *, operation: str | None = None):
        super().__init__(message)
        self.operation = operation
