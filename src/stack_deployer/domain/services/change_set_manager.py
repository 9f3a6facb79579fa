"""Change set lifecycle: create, wait, then execute or discard."""

from __future__ import annotations

import structlog

from stack_deployer.domain.errors import ChangeSetCreationError, StaleStackCleanupError
from stack_deployer.domain.models.change_set import (
    ChangeSetDescription,
    ChangeSetRequest,
    ChangeSetStatus,
    ChangeSetType,
)
from stack_deployer.domain.models.stack import StackParameter, TemplateBodyParameter
from stack_deployer.domain.ports.services import CloudFormationClient
from stack_deployer.domain.services.stack_poller import StackStatusPoller
from stack_deployer.infrastructure.observability.metrics import CHANGE_SETS_TOTAL


logger = structlog.get_logger(__name__)


def change_set_name_for(execution_id: str, prefix: str = "Deploy-") -> str:
    """Change set names are unique per execution so retries never collide."""
    return f"{prefix}{execution_id}"


class ChangeSetManager:
    """Drives a single change set against one stack."""

    def __init__(self, client: CloudFormationClient, poller: StackStatusPoller) -> None:
        self._client = client
        self._poller = poller

    async def clean_up_failed_stack(self, stack_name: str) -> bool:
        """Delete a stack left behind by a failed creation. Returns True if one was removed."""
        if not await self._poller.failed_creating(stack_name):
            return False

        logger.info("deleting_failed_stack", stack_name=stack_name)
        await self._client.delete_stack(stack_name)
        deleted = await self._poller.wait_for_stack(stack_name, expect_deletion=True)
        if deleted is not None and not deleted.status.is_deleted:
            raise StaleStackCleanupError(
                f"Failed deleting stack {stack_name} that had previously failed creation "
                f"(current state: {deleted.status})"
            )
        return True

    async def create(
        self,
        stack_name: str,
        change_set_name: str,
        update: bool,
        body: TemplateBodyParameter,
        parameters: list[StackParameter],
        role_arn: str | None = None,
        execution_id: str = "",
    ) -> tuple[ChangeSetDescription, ChangeSetDescription]:
        """Submit a change set and wait until it is ready.

        Returns the creation response (carrying the stack id) and the
        settled description. A change set that failed only because it
        was empty comes back with no changes.
        """
        request = ChangeSetRequest(
            stack_name=stack_name,
            change_set_name=change_set_name,
            change_set_type=ChangeSetType.UPDATE if update else ChangeSetType.CREATE,
            description=f"Change set for execution {execution_id}" if execution_id else "",
            body=body,
            parameters=parameters,
            role_arn=role_arn,
        )
        logger.debug(
            "change_set_creating",
            stack_name=stack_name,
            change_set_name=change_set_name,
            change_set_type=request.change_set_type.value,
        )
        created = await self._client.create_change_set(request)
        try:
            description = await self._poller.wait_for_change_set(stack_name, change_set_name)
            if description.is_empty_failure:
                description = description.model_copy(update={"changes": []})
            elif description.status != ChangeSetStatus.CREATE_COMPLETE:
                raise ChangeSetCreationError(
                    f"Failed to create change set {change_set_name} for stack {stack_name}: "
                    f"{description.status.value} ({description.status_reason})"
                )
        except BaseException:
            # The change set must not outlive a deploy that never executes it
            await self._discard_after_error(stack_name, change_set_name)
            raise

        CHANGE_SETS_TOTAL.labels(
            change_set_type=request.change_set_type.value,
            outcome="changes" if description.has_changes else "empty",
        ).inc()
        return created, description

    async def discard(self, stack_name: str, change_set_name: str) -> None:
        logger.debug("change_set_discarded", stack_name=stack_name, change_set_name=change_set_name)
        await self._client.delete_change_set(stack_name, change_set_name)

    async def _discard_after_error(self, stack_name: str, change_set_name: str) -> None:
        try:
            await self.discard(stack_name, change_set_name)
        except Exception as e:
            logger.warning(
                "change_set_discard_failed",
                stack_name=stack_name,
                change_set_name=change_set_name,
                error=str(e),
            )

    async def execute(self, stack_name: str, change_set_name: str) -> None:
        """Start executing; the stack update continues asynchronously."""
        logger.debug("change_set_executing", stack_name=stack_name, change_set_name=change_set_name)
        await self._client.execute_change_set(stack_name, change_set_name)
