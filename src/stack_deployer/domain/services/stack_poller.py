"""Polling of stack and change set status until they settle."""

from __future__ import annotations

import asyncio
import time

import structlog

from stack_deployer.domain.errors import StackNotFoundError, StackWaitTimeoutError
from stack_deployer.domain.models.change_set import ChangeSetDescription
from stack_deployer.domain.models.stack import StackDescription
from stack_deployer.domain.ports.services import CloudFormationClient


logger = structlog.get_logger(__name__)


class StackStatusPoller:
    """Observes stacks and change sets through repeated describe calls.

    Every wait sleeps ``poll_interval`` seconds between calls and can be
    cancelled at any sleep or call. Waits are unbounded unless a
    ``wait_timeout`` is given.
    """

    def __init__(
        self,
        client: CloudFormationClient,
        poll_interval: float = 5.0,
        change_set_poll_interval: float | None = None,
        wait_timeout: float | None = None,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._change_set_poll_interval = (
            poll_interval if change_set_poll_interval is None else change_set_poll_interval
        )
        self._wait_timeout = wait_timeout

    async def describe(self, stack_name: str) -> StackDescription | None:
        return await self._client.describe_stack(stack_name)

    async def exists(self, stack_name: str) -> bool:
        """True when the stack is live, i.e. neither deleted nor an unexecuted shell."""
        description = await self.describe(stack_name)
        if description is None:
            return False
        return not (description.status.is_deleted or description.status.is_review)

    async def failed_creating(self, stack_name: str) -> bool:
        description = await self.describe(stack_name)
        return description is not None and description.status.is_creation_failure

    async def wait_for_stack(
        self, stack_name: str, expect_deletion: bool = False
    ) -> StackDescription | None:
        """Poll until the stack reaches a stable status.

        Returns the terminal description for the caller to classify, or
        None when the stack is gone and deletion was expected.
        """
        deadline = self._deadline()
        while True:
            description = await self.describe(stack_name)

            if description is None:
                if expect_deletion:
                    logger.debug("stack_gone", stack_name=stack_name)
                    return None
                raise StackNotFoundError(f"The stack named {stack_name} does not exist")

            if description.status.is_stable:
                logger.debug(
                    "stack_settled", stack_name=stack_name, status=str(description.status)
                )
                return description

            logger.debug(
                "stack_in_progress", stack_name=stack_name, status=description.status.name
            )
            self._check_deadline(deadline, stack_name, description.status.name)
            await asyncio.sleep(self._poll_interval)

    async def wait_for_change_set(
        self, stack_name: str, change_set_name: str
    ) -> ChangeSetDescription:
        """Poll until the change set is no longer being computed."""
        deadline = self._deadline()
        while True:
            description = await self._client.describe_change_set(stack_name, change_set_name)
            if not description.status.is_pending:
                logger.debug(
                    "change_set_settled",
                    stack_name=stack_name,
                    change_set_name=change_set_name,
                    status=description.status.value,
                    change_count=len(description.changes),
                )
                return description

            self._check_deadline(deadline, change_set_name, description.status.value)
            await asyncio.sleep(self._change_set_poll_interval)

    def _deadline(self) -> float | None:
        if self._wait_timeout is None:
            return None
        return time.monotonic() + self._wait_timeout

    def _check_deadline(self, deadline: float | None, name: str, status: str) -> None:
        if deadline is not None and time.monotonic() >= deadline:
            raise StackWaitTimeoutError(
                f"Timed out after {self._wait_timeout}s waiting for {name} (last status: {status})"
            )
