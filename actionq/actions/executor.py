"""
Execution driver - applies one analysis result's batch of actions.

Actions run strictly in the order received (priority is not used for
ordering), one at a time, each through ActionRouter. A failing action is
logged with its index and type, recorded in the report, and the batch moves
on. Nothing is rolled back: a batch is isolated-failure work, not a
transaction.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from actionq.actions.errors import ActionError
from actionq.actions.models import Action
from actionq.actions.router import ActionRouter
from actionq.notifications.channels import ChannelRegistry, build_default_registry
from actionq.notifications.tracker import NotificationTracker
from actionq.observability.logging import get_logger
from actionq.observability.telemetry import counter, log_event, time_block
from actionq.storage.repository import RecordStore, SQLiteRecordStore
from actionq.utils.error_sanitizer import describe_exception

logger = get_logger(__name__)

UNEXPECTED_ERROR_KIND = "unexpected_error"


@dataclass
class ActionOutcome:
    """Result of attempting one action of a batch."""

    index: int
    action_type: str | None
    target: str | None
    success: bool
    operation: str | None = None
    error_kind: str | None = None
    error: str | None = None
    notification_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BatchReport:
    """Per-action outcomes for one batch; failures stay individually identified."""

    record_id: int | None = None
    outcomes: list[ActionOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failures(self) -> list[ActionOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return f"applied {self.attempted} actions with {self.failed} failures"

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "summary": self.summary(),
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


def _peek(item: Any, key: str) -> str | None:
    value = item.get(key) if isinstance(item, Mapping) else None
    return value if isinstance(value, str) else None


class ExecutionDriver:
    """Runs batches of actions through a router with per-action failure isolation."""

    def __init__(self, router: ActionRouter):
        self.router = router

    def execute(
        self,
        actions: Sequence[Action | Mapping[str, Any]],
        record_id: int | None = None,
    ) -> BatchReport:
        """
        Apply every action in list order.

        Args:
            actions: Action models or raw JSON objects, as produced upstream
            record_id: Subject the analysis result concerns (for logs/report)

        Returns:
            BatchReport with one outcome per input item

        Side Effects:
            - Whatever each action does (status/tag writes, notification sends)
            - Logs each failure with its index and type
            - Emits action.* counters and a batch event
        """
        report = BatchReport(record_id=record_id)

        with time_block("action.batch"):
            for index, item in enumerate(actions):
                report.outcomes.append(self._execute_one(index, item, record_id))

        log_event(
            "action.batch_complete",
            record_id=record_id,
            attempted=report.attempted,
            failed=report.failed,
        )
        if report.failed:
            logger.warning("Batch for record %s: %s", record_id, report.summary())
        else:
            logger.info("Batch for record %s: %s", record_id, report.summary())
        return report

    def _execute_one(
        self, index: int, item: Action | Mapping[str, Any], record_id: int | None
    ) -> ActionOutcome:
        if isinstance(item, Action):
            action_type, target = item.type, item.target
        else:
            action_type, target = _peek(item, "type"), _peek(item, "target")

        try:
            action = item if isinstance(item, Action) else Action.from_payload(item)
            result = self.router.route(action)
        except ActionError as exc:
            logger.warning(
                "Action failed (record: %s, index: %d, type: %s): %s",
                record_id,
                index,
                action_type,
                exc.message,
            )
            counter(f"action.failed.{exc.kind}")
            return ActionOutcome(
                index=index,
                action_type=action_type,
                target=target,
                success=False,
                error_kind=exc.kind,
                error=describe_exception(exc),
                notification_id=getattr(exc, "notification_id", None),
            )
        except Exception as exc:
            logger.exception(
                "Action raised unexpectedly (record: %s, index: %d, type: %s)",
                record_id,
                index,
                action_type,
            )
            counter(f"action.failed.{UNEXPECTED_ERROR_KIND}")
            return ActionOutcome(
                index=index,
                action_type=action_type,
                target=target,
                success=False,
                error_kind=UNEXPECTED_ERROR_KIND,
                error=describe_exception(exc),
            )

        counter("action.succeeded")
        return ActionOutcome(
            index=index,
            action_type=action_type,
            target=target,
            success=True,
            operation=result.operation,
            notification_id=result.notification.id if result.notification else None,
        )


def build_driver(
    store: RecordStore | None = None,
    channels: ChannelRegistry | None = None,
) -> ExecutionDriver:
    """Wire store, channel registry, tracker and router into a driver.

    Defaults: the central SQLite store and senders configured from SMTP_* /
    WEBHOOK_* environment variables.
    """
    store = store if store is not None else SQLiteRecordStore()
    channels = channels if channels is not None else build_default_registry()
    tracker = NotificationTracker(store, channels)
    return ExecutionDriver(ActionRouter(store, tracker))
