"""
Action models (Pydantic v2).

An Action is one suggested operation from the analysis service. Its params are
an open JSON mapping on the way in; the router narrows them to one of the
closed parameter structs below before anything is applied.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    ValidationError,
    field_validator,
)

from actionq.actions.errors import ParameterValidationError


class ActionType(str, Enum):
    """Handler families an action can address."""

    DATABASE = "database"
    NOTIFICATION = "notification"
    TAG = "tag"


class DatabaseTarget(str, Enum):
    UPDATE_STATUS = "update_status"
    ADD_TAG = "add_tag"


class Action(BaseModel):
    """
    A single suggested operation.

    ``type`` and ``target`` stay plain strings so an unknown family reaches the
    router and fails there as an unresolved action instead of at parse time.
    ``priority`` is carried through but batches run in arrival order.
    ``rollback`` is an informational hint; nothing is rolled back.
    """

    model_config = ConfigDict(frozen=True)

    type: StrictStr
    target: StrictStr = ""
    params: dict[str, Any] = Field(default_factory=dict)
    priority: int = 0
    rollback: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> Action:
        """
        Parse one raw action object from the analysis output.

        Raises:
            ParameterValidationError: If the object is not action-shaped
        """
        if not isinstance(payload, Mapping):
            raise ParameterValidationError(
                f"action must be a JSON object, got {type(payload).__name__}"
            )
        try:
            return cls.model_validate(dict(payload))
        except ValidationError as exc:
            action_type = payload.get("type")
            raise ParameterValidationError(
                f"malformed action: {describe_validation_error(exc)}",
                fields=error_fields(exc),
                action_type=action_type if isinstance(action_type, str) else None,
            ) from exc


def _coerce_record_id(value: Any) -> int:
    # JSON producers emit numbers as floats; accept integral ones only
    if isinstance(value, bool):
        raise ValueError("record_id must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError("record_id must be a number")


class RecordParams(BaseModel):
    """Parameters shared by every action that addresses a subject record."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    record_id: int

    @field_validator("record_id", mode="before")
    @classmethod
    def _record_id_numeric(cls, value: Any) -> int:
        return _coerce_record_id(value)


class UpdateStatusParams(RecordParams):
    status: StrictStr = Field(min_length=1)


class AddTagParams(RecordParams):
    tag: StrictStr = Field(min_length=1)


class NotificationParams(RecordParams):
    """Notification parameters; channel-specific keys (to, url, subject) pass through."""

    model_config = ConfigDict(frozen=True, extra="allow")

    message: StrictStr = Field(min_length=1)
    channel: StrictStr = Field(min_length=1)

    @property
    def channel_params(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


def error_fields(exc: ValidationError) -> list[str]:
    return [".".join(str(part) for part in err["loc"]) or "<root>" for err in exc.errors()]


def describe_validation_error(exc: ValidationError) -> str:
    """One-line summary of a pydantic error, e.g. 'record_id: Field required'."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)
