"""Background monitor streaming stack events while a stack changes."""

from __future__ import annotations

import asyncio
from datetime import datetime
from types import TracebackType

import structlog

from stack_deployer.domain.models.base import utc_now
from stack_deployer.domain.models.stack import StackEvent
from stack_deployer.domain.ports.services import ActivityRenderer, CloudFormationClient
from stack_deployer.infrastructure.observability.activity import LoggingActivityRenderer


logger = structlog.get_logger(__name__)


class StackActivityMonitor:
    """Periodically fetches new stack events and hands them to a renderer.

    Runs as its own asyncio task so it never delays status polling.
    ``start`` and ``stop`` are idempotent, and the monitor can be used as
    an async context manager so it is stopped on every exit path.
    """

    def __init__(
        self,
        client: CloudFormationClient,
        stack_name: str,
        resource_paths: dict[str, str] | None = None,
        resources_total: int | None = None,
        renderer: ActivityRenderer | None = None,
        interval: float = 2.0,
    ) -> None:
        self._client = client
        self._stack_name = stack_name
        self._resource_paths = resource_paths or {}
        self._resources_total = resources_total
        self._renderer = renderer or LoggingActivityRenderer()
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._stopped = False
        self._start_time: datetime | None = None
        self._seen: set[str] = set()
        self._resources_done = 0
        self._failures: list[StackEvent] = []

    @property
    def running(self) -> bool:
        return self._task is not None and not self._stopped

    @property
    def failures(self) -> list[StackEvent]:
        return list(self._failures)

    def start(self) -> StackActivityMonitor:
        if self._task is None and not self._stopped:
            self._start_time = utc_now()
            self._task = asyncio.create_task(self._run())
            logger.debug("activity_monitor_started", stack_name=self._stack_name)
        return self

    async def stop(self) -> None:
        if self._task is None or self._stopped:
            return
        self._stopped = True

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            # Only the monitor's own cancellation ends here; the caller's propagates
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

        # Pick up whatever happened since the last tick
        await self._read_safely()
        self._renderer.finish(self._failures)
        logger.debug(
            "activity_monitor_stopped",
            stack_name=self._stack_name,
            resources_done=self._resources_done,
            failures=len(self._failures),
        )

    async def __aenter__(self) -> StackActivityMonitor:
        return self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            await self._read_safely()
            await asyncio.sleep(self._interval)

    async def _read_safely(self) -> None:
        try:
            await self._read_new_events()
        except Exception as e:
            logger.warning(
                "activity_monitor_read_failed", stack_name=self._stack_name, error=str(e)
            )

    async def _read_new_events(self) -> None:
        fresh: list[StackEvent] = []
        next_token: str | None = None

        while True:
            events, next_token = await self._client.describe_stack_events(
                self._stack_name, next_token
            )
            reached_known = False
            for event in events:
                if event.event_id in self._seen or self._is_before_start(event):
                    reached_known = True
                    break
                fresh.append(event)
            if reached_known or not next_token:
                break

        # Events arrive newest first
        for event in reversed(fresh):
            self._seen.add(event.event_id)
            self._report(event)

    def _is_before_start(self, event: StackEvent) -> bool:
        return self._start_time is not None and event.timestamp < self._start_time

    def _report(self, event: StackEvent) -> None:
        if not event.is_stack_event:
            if event.is_complete:
                self._resources_done += 1
            if event.is_failure:
                self._failures.append(event)

        self._renderer.render(
            event,
            self._progress(),
            self._resource_paths.get(event.logical_resource_id),
        )

    def _progress(self) -> str | None:
        if self._resources_total is None:
            return None
        return f"{self._resources_done}/{self._resources_total}"
