"""
Action router - resolves an action to its handler and applies it.

Routing table (type -> target -> handler):

    database      update_status   store.update_status
                  add_tag         store.add_tag
    notification  *               tracker.deliver
    tag           *               store.add_tag

The notification and tag families have one operation each, so their target is
a free-text label and any value resolves. Parameters are validated into the
route's parameter struct before the handler runs; a validation failure never
leaves a partial effect behind.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from actionq.actions.errors import ParameterValidationError, UnresolvedActionError
from actionq.actions.models import (
    Action,
    ActionType,
    AddTagParams,
    DatabaseTarget,
    NotificationParams,
    UpdateStatusParams,
    describe_validation_error,
    error_fields,
)
from actionq.notifications.models import Notification
from actionq.notifications.tracker import NotificationTracker
from actionq.observability.logging import get_logger
from actionq.storage.models import Tag
from actionq.storage.repository import RecordStore

logger = get_logger(__name__)

ANY_TARGET = "*"


@dataclass
class HandlerResult:
    """What a handler applied."""

    operation: str
    record_id: int
    tag: Tag | None = None
    notification: Notification | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Route:
    operation: str
    params_model: type[BaseModel]
    handler: Callable[[Any], HandlerResult]


class ActionRouter:
    """Validates and applies single actions against the record store."""

    def __init__(self, store: RecordStore, tracker: NotificationTracker):
        self.store = store
        self.tracker = tracker
        self._routes: dict[str, dict[str, Route]] = {
            ActionType.DATABASE.value: {
                DatabaseTarget.UPDATE_STATUS.value: Route(
                    "update_status", UpdateStatusParams, self._update_status
                ),
                DatabaseTarget.ADD_TAG.value: Route("add_tag", AddTagParams, self._add_tag),
            },
            ActionType.NOTIFICATION.value: {
                ANY_TARGET: Route("notify", NotificationParams, self._notify),
            },
            ActionType.TAG.value: {
                ANY_TARGET: Route("add_tag", AddTagParams, self._add_tag),
            },
        }

    def resolve(self, action: Action) -> Route:
        """
        Raises:
            UnresolvedActionError: Unknown type, or unknown target within a type
        """
        family = self._routes.get(action.type)
        if family is None:
            raise UnresolvedActionError("type", action.type, action_type=action.type)

        route = family.get(action.target) or family.get(ANY_TARGET)
        if route is None:
            raise UnresolvedActionError("target", action.target, action_type=action.type)
        return route

    def validate(self, action: Action) -> tuple[Route, BaseModel]:
        """
        Resolve the route and validate params in one step, with no side effects.

        Raises:
            UnresolvedActionError: No handler for (type, target)
            ParameterValidationError: Params don't match the route's struct
        """
        route = self.resolve(action)
        try:
            params = route.params_model.model_validate(action.params)
        except ValidationError as exc:
            raise ParameterValidationError(
                f"invalid parameters for {action.type}/{action.target}: "
                f"{describe_validation_error(exc)}",
                fields=error_fields(exc),
                action_type=action.type,
                target=action.target,
            ) from exc
        return route, params

    def route(self, action: Action) -> HandlerResult:
        """
        Apply one action.

        Raises:
            ActionError: Any of UnresolvedActionError, ParameterValidationError,
                DeliveryError, PersistenceError
        """
        route, params = self.validate(action)
        logger.debug("Routing %s/%s to %s", action.type, action.target, route.operation)
        return route.handler(params)

    # --- handlers ----------------------------------------------------------

    def _update_status(self, params: UpdateStatusParams) -> HandlerResult:
        self.store.update_status(params.record_id, params.status)
        return HandlerResult(
            operation="update_status",
            record_id=params.record_id,
            details={"status": params.status},
        )

    def _add_tag(self, params: AddTagParams) -> HandlerResult:
        tag = self.store.add_tag(params.record_id, params.tag)
        return HandlerResult(operation="add_tag", record_id=params.record_id, tag=tag)

    def _notify(self, params: NotificationParams) -> HandlerResult:
        notification = self.tracker.deliver(
            params.record_id,
            params.channel,
            params.message,
            params.channel_params,
        )
        return HandlerResult(
            operation="notify",
            record_id=params.record_id,
            notification=notification,
            details={"channel": params.channel},
        )
