"""Activity renderers for stack event streams."""

from __future__ import annotations

import structlog

from stack_deployer.domain.models.stack import StackEvent
from stack_deployer.domain.ports.services import ActivityRenderer
from stack_deployer.infrastructure.observability.metrics import STACK_EVENTS_OBSERVED


logger = structlog.get_logger(__name__)


class LoggingActivityRenderer(ActivityRenderer):
    """Reports stack activity through structured logging."""

    def render(
        self, event: StackEvent, progress: str | None, resource_path: str | None
    ) -> None:
        STACK_EVENTS_OBSERVED.labels(resource_status=event.resource_status).inc()
        log = logger.warning if event.is_failure else logger.info
        log(
            "stack_activity",
            stack_name=event.stack_name,
            progress=progress,
            resource_status=event.resource_status,
            resource_type=event.resource_type,
            logical_id=event.logical_resource_id,
            resource_path=resource_path,
            reason=event.resource_status_reason or None,
            timestamp=event.timestamp.isoformat(),
        )

    def finish(self, failures: list[StackEvent]) -> None:
        for event in failures:
            logger.error(
                "stack_resource_failed",
                stack_name=event.stack_name,
                logical_id=event.logical_resource_id,
                resource_type=event.resource_type,
                reason=event.resource_status_reason,
            )


class CollectingActivityRenderer(ActivityRenderer):
    """Keeps rendered activity in memory for embedding and testing."""

    def __init__(self) -> None:
        self.rendered: list[tuple[StackEvent, str | None, str | None]] = []
        self.failures: list[StackEvent] = []
        self.finished = False

    def render(
        self, event: StackEvent, progress: str | None, resource_path: str | None
    ) -> None:
        self.rendered.append((event, progress, resource_path))

    def finish(self, failures: list[StackEvent]) -> None:
        self.failures = list(failures)
        self.finished = True

    @property
    def statuses(self) -> list[str]:
        return [event.resource_status for event, _, _ in self.rendered]
