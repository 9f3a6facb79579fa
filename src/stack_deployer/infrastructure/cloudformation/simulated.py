"""Simulated control plane implementation."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
import yaml
from botocore.exceptions import ClientError

from stack_deployer.domain.models.base import generate_id, utc_now
from stack_deployer.domain.models.change_set import (
    ChangeSetDescription,
    ChangeSetRequest,
    ChangeSetStatus,
    ChangeSetType,
)
from stack_deployer.domain.models.stack import (
    Environment,
    StackDescription,
    StackEvent,
    StackStatus,
)
from stack_deployer.domain.ports.services import (
    ClientMode,
    CloudFormationClient,
    CloudFormationClientFactory,
)
from stack_deployer.infrastructure.storage.toolkit import InMemoryToolkitInfo


logger = structlog.get_logger(__name__)

STACK_RESOURCE_TYPE = "AWS::CloudFormation::Stack"
NO_CHANGES_REASON = (
    "The submitted information didn't contain changes. "
    "Submit different information to create a change set."
)


def _client_error(operation: str, code: str, message: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class SimulatedCloudFormationClient(CloudFormationClient):
    """Simulated CloudFormation control plane for development/testing.

    Keeps stacks and change sets in memory and advances in-progress
    operations one step per ``describe_stack`` poll, emitting the stack
    events a real deployment would. Errors are raised as botocore
    ``ClientError`` so callers see the same shapes as against AWS.
    """

    def __init__(
        self,
        environment: Environment | None = None,
        template_store: InMemoryToolkitInfo | None = None,
        settle_after: int = 1,
        latency: float = 0.0,
        events_page_size: int = 100,
    ) -> None:
        self._environment = environment or Environment(account="123456789012", region="us-east-1")
        self._template_store = template_store
        self._settle_after = settle_after
        self._latency = latency
        self._events_page_size = events_page_size
        self._stacks: dict[str, dict[str, Any]] = {}
        self._calls: list[tuple[str, dict[str, Any]]] = []
        self.failing_resources: set[str] = set()
        self.fail_deletes = False
        self.empty_change_sets_fail = True

    # ------------------------------------------------------------------
    # Test and development helpers
    # ------------------------------------------------------------------

    @property
    def calls(self) -> list[tuple[str, dict[str, Any]]]:
        return list(self._calls)

    def call_names(self) -> list[str]:
        return [name for name, _ in self._calls]

    def seed_stack(
        self,
        stack_name: str,
        status: str,
        template: dict[str, Any] | None = None,
        outputs: dict[str, str] | None = None,
        reason: str = "",
    ) -> str:
        """Put a stack into the control plane as if it had been deployed earlier."""
        stack = self._new_stack(stack_name)
        stack.update({
            "status": status,
            "reason": reason,
            "template": template or {},
            "outputs": dict(outputs or {}),
        })
        return str(stack["stack_id"])

    def stack_template(self, stack_name: str) -> dict[str, Any] | None:
        stack = self._stacks.get(stack_name)
        return dict(stack["template"]) if stack else None

    def change_set_names(self, stack_name: str) -> list[str]:
        stack = self._stacks.get(stack_name)
        return list(stack["change_sets"]) if stack else []

    # ------------------------------------------------------------------
    # Control plane operations
    # ------------------------------------------------------------------

    async def create_change_set(self, request: ChangeSetRequest) -> ChangeSetDescription:
        await self._record("create_change_set", request.to_api_kwargs())
        stack = self._live_stack(request.stack_name)

        if request.change_set_type == ChangeSetType.CREATE:
            if stack is not None and stack["status"] != "REVIEW_IN_PROGRESS":
                raise _client_error(
                    "CreateChangeSet",
                    "AlreadyExistsException",
                    f"Stack [{request.stack_name}] already exists",
                )
            if stack is None:
                stack = self._new_stack(request.stack_name)
                stack["status"] = "REVIEW_IN_PROGRESS"
        elif stack is None or stack["status"] == "REVIEW_IN_PROGRESS":
            raise _client_error(
                "CreateChangeSet",
                "ValidationError",
                f"Stack [{request.stack_name}] does not exist",
            )

        template = self._resolve_template(request)
        changes = self._diff_resources(stack["template"], template)
        change_set_id = (
            f"arn:aws:cloudformation:{self._environment.region}:{self._environment.account}"
            f":changeSet/{request.change_set_name}/{generate_id()}"
        )

        if changes or not self.empty_change_sets_fail:
            final_status, final_reason = ChangeSetStatus.CREATE_COMPLETE, ""
        else:
            final_status, final_reason = ChangeSetStatus.FAILED, NO_CHANGES_REASON

        stack["change_sets"][request.change_set_name] = {
            "id": change_set_id,
            "type": request.change_set_type,
            "template": template,
            "changes": changes,
            "status": ChangeSetStatus.CREATE_IN_PROGRESS,
            "final_status": final_status,
            "reason": final_reason,
            "remaining": self._settle_after,
        }
        return ChangeSetDescription(
            change_set_id=change_set_id,
            change_set_name=request.change_set_name,
            stack_id=stack["stack_id"],
        )

    async def describe_change_set(
        self, stack_name: str, change_set_name: str
    ) -> ChangeSetDescription:
        await self._record(
            "describe_change_set", {"StackName": stack_name, "ChangeSetName": change_set_name}
        )
        stack, change_set = self._change_set(stack_name, change_set_name, "DescribeChangeSet")

        if change_set["status"].is_pending:
            change_set["remaining"] -= 1
            if change_set["remaining"] <= 0:
                change_set["status"] = change_set["final_status"]

        settled = not change_set["status"].is_pending
        return ChangeSetDescription(
            change_set_id=change_set["id"],
            change_set_name=change_set_name,
            stack_id=stack["stack_id"],
            status=change_set["status"],
            status_reason=change_set["reason"] if settled else "",
            changes=change_set["changes"] if settled else [],
        )

    async def execute_change_set(self, stack_name: str, change_set_name: str) -> None:
        await self._record(
            "execute_change_set", {"StackName": stack_name, "ChangeSetName": change_set_name}
        )
        stack, change_set = self._change_set(stack_name, change_set_name, "ExecuteChangeSet")
        if change_set["status"] != ChangeSetStatus.CREATE_COMPLETE:
            raise _client_error(
                "ExecuteChangeSet",
                "InvalidChangeSetStatus",
                f"ChangeSet [{change_set_name}] cannot be executed in its current status of "
                f"[{change_set['status'].value}]",
            )

        creating = change_set["type"] == ChangeSetType.CREATE
        verb = "CREATE" if creating else "UPDATE"
        failed = [
            c["ResourceChange"]["LogicalResourceId"]
            for c in change_set["changes"]
            if c["ResourceChange"]["LogicalResourceId"] in self.failing_resources
        ]
        if failed:
            final = "ROLLBACK_COMPLETE" if creating else "UPDATE_ROLLBACK_COMPLETE"
        else:
            final = f"{verb}_COMPLETE"

        stack["change_sets"].clear()
        stack["status"] = f"{verb}_IN_PROGRESS"
        stack["reason"] = "User Initiated"
        self._emit(stack, stack_name, STACK_RESOURCE_TYPE, stack["status"], "User Initiated")
        stack["pending"] = {
            "remaining": self._settle_after,
            "final": final,
            "changes": change_set["changes"],
            "failed": failed,
            "template": change_set["template"],
        }

    async def delete_change_set(self, stack_name: str, change_set_name: str) -> None:
        await self._record(
            "delete_change_set", {"StackName": stack_name, "ChangeSetName": change_set_name}
        )
        stack, _ = self._change_set(stack_name, change_set_name, "DeleteChangeSet")
        del stack["change_sets"][change_set_name]

    async def describe_stack(self, stack_name: str) -> StackDescription | None:
        await self._record("describe_stack", {"StackName": stack_name})
        stack = self._live_stack(stack_name)
        if stack is None:
            return None

        if stack.get("pending"):
            stack["pending"]["remaining"] -= 1
            if stack["pending"]["remaining"] <= 0:
                self._settle(stack)
            if stack["status"] == "DELETE_COMPLETE":
                return None

        return StackDescription(
            stack_name=stack_name,
            stack_id=stack["stack_id"],
            status=StackStatus(name=stack["status"], reason=stack["reason"]),
            outputs=dict(stack["outputs"]),
        )

    async def delete_stack(self, stack_name: str, role_arn: str | None = None) -> None:
        params: dict[str, Any] = {"StackName": stack_name}
        if role_arn:
            params["RoleARN"] = role_arn
        await self._record("delete_stack", params)

        stack = self._live_stack(stack_name)
        if stack is None:
            return

        stack["status"] = "DELETE_IN_PROGRESS"
        stack["reason"] = "User Initiated"
        self._emit(stack, stack_name, STACK_RESOURCE_TYPE, stack["status"], "User Initiated")
        removals = [
            {"ResourceChange": {"Action": "Remove", "LogicalResourceId": logical_id,
                                "ResourceType": resource.get("Type", "")}}
            for logical_id, resource in stack["template"].get("Resources", {}).items()
        ]
        stack["pending"] = {
            "remaining": self._settle_after,
            "final": "DELETE_FAILED" if self.fail_deletes else "DELETE_COMPLETE",
            "changes": removals,
            "failed": [c["ResourceChange"]["LogicalResourceId"] for c in removals][:1]
            if self.fail_deletes else [],
            "template": stack["template"],
        }

    async def describe_stack_events(
        self, stack_name: str, next_token: str | None = None
    ) -> tuple[list[StackEvent], str | None]:
        await self._record("describe_stack_events", {"StackName": stack_name})
        stack = self._stacks.get(stack_name)
        if stack is None:
            return [], None

        newest_first = list(reversed(stack["events"]))
        start = int(next_token) if next_token else 0
        end = start + self._events_page_size
        page = newest_first[start:end]
        return page, (str(end) if end < len(newest_first) else None)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _record(self, operation: str, params: dict[str, Any]) -> None:
        self._calls.append((operation, params))
        logger.debug("simulated_cloudformation_call", operation=operation)
        await asyncio.sleep(self._latency)

    def _new_stack(self, stack_name: str) -> dict[str, Any]:
        stack: dict[str, Any] = {
            "stack_id": (
                f"arn:aws:cloudformation:{self._environment.region}:{self._environment.account}"
                f":stack/{stack_name}/{generate_id()}"
            ),
            "status": "REVIEW_IN_PROGRESS",
            "reason": "",
            "template": {},
            "outputs": {},
            "events": [],
            "change_sets": {},
            "pending": None,
        }
        self._stacks[stack_name] = stack
        return stack

    def _live_stack(self, stack_name: str) -> dict[str, Any] | None:
        stack = self._stacks.get(stack_name)
        if stack is None or stack["status"] == "DELETE_COMPLETE":
            return None
        return stack

    def _change_set(
        self, stack_name: str, change_set_name: str, operation: str
    ) -> tuple[dict[str, Any], dict[str, Any]]:
        stack = self._live_stack(stack_name)
        if stack is None or change_set_name not in stack["change_sets"]:
            raise _client_error(
                operation,
                "ChangeSetNotFound",
                f"ChangeSet [{change_set_name}] does not exist",
            )
        return stack, stack["change_sets"][change_set_name]

    def _resolve_template(self, request: ChangeSetRequest) -> dict[str, Any]:
        if request.body.template_body is not None:
            return dict(yaml.safe_load(request.body.template_body) or {})
        if self._template_store is not None and request.body.template_url:
            content = self._template_store.get_by_url(request.body.template_url)
            if content is not None:
                return dict(yaml.safe_load(content) or {})
        raise _client_error(
            "CreateChangeSet",
            "ValidationError",
            f"TemplateURL must be a supported URL: {request.body.template_url}",
        )

    @staticmethod
    def _diff_resources(
        current: dict[str, Any], desired: dict[str, Any]
    ) -> list[dict[str, Any]]:
        before = current.get("Resources", {}) or {}
        after = desired.get("Resources", {}) or {}
        changes: list[dict[str, Any]] = []

        for logical_id, resource in after.items():
            if logical_id not in before:
                action = "Add"
            elif before[logical_id] != resource:
                action = "Modify"
            else:
                continue
            changes.append({
                "Type": "Resource",
                "ResourceChange": {
                    "Action": action,
                    "LogicalResourceId": logical_id,
                    "ResourceType": resource.get("Type", ""),
                },
            })

        for logical_id, resource in before.items():
            if logical_id not in after:
                changes.append({
                    "Type": "Resource",
                    "ResourceChange": {
                        "Action": "Remove",
                        "LogicalResourceId": logical_id,
                        "ResourceType": resource.get("Type", ""),
                    },
                })
        return changes

    def _settle(self, stack: dict[str, Any]) -> None:
        pending = stack["pending"]
        stack_name = next(name for name, s in self._stacks.items() if s is stack)

        for change in pending["changes"]:
            resource = change["ResourceChange"]
            verb = {"Add": "CREATE", "Modify": "UPDATE", "Remove": "DELETE"}[resource["Action"]]
            if resource["LogicalResourceId"] in pending["failed"]:
                self._emit(
                    stack, resource["LogicalResourceId"], resource["ResourceType"],
                    f"{verb}_FAILED", "Simulated resource failure",
                )
            else:
                self._emit(
                    stack, resource["LogicalResourceId"], resource["ResourceType"],
                    f"{verb}_COMPLETE", "",
                )

        final = pending["final"]
        stack["status"] = final
        stack["reason"] = "" if final.endswith("_COMPLETE") and "ROLLBACK" not in final else (
            "The following resource(s) failed: " + ", ".join(pending["failed"])
        )
        if final in ("CREATE_COMPLETE", "UPDATE_COMPLETE"):
            stack["template"] = pending["template"]
            stack["outputs"] = self._outputs(pending["template"])
        self._emit(stack, stack_name, STACK_RESOURCE_TYPE, final, stack["reason"])
        stack["pending"] = None

    @staticmethod
    def _outputs(template: dict[str, Any]) -> dict[str, str]:
        outputs: dict[str, str] = {}
        for key, output in (template.get("Outputs", {}) or {}).items():
            value = output.get("Value") if isinstance(output, dict) else output
            outputs[key] = value if isinstance(value, str) else f"sim-{key.lower()}"
        return outputs

    def _emit(
        self,
        stack: dict[str, Any],
        logical_id: str,
        resource_type: str,
        status: str,
        reason: str,
    ) -> None:
        stack_name = next(name for name, s in self._stacks.items() if s is stack)
        stack["events"].append(StackEvent(
            event_id=generate_id(),
            stack_name=stack_name,
            logical_resource_id=logical_id,
            resource_type=resource_type,
            resource_status=status,
            resource_status_reason=reason,
            timestamp=utc_now(),
        ))


class SimulatedClientFactory(CloudFormationClientFactory):
    """Factory handing out one shared simulated client."""

    def __init__(self, client: SimulatedCloudFormationClient | None = None) -> None:
        self.client = client or SimulatedCloudFormationClient()
        self.requests: list[tuple[Environment, ClientMode]] = []

    async def cloudformation(
        self, environment: Environment, mode: ClientMode
    ) -> CloudFormationClient:
        self.requests.append((environment, mode))
        return self.client
