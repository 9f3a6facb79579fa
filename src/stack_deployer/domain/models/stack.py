"""Stack domain models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, model_validator

from stack_deployer.domain.models.base import ValueObject


LOGICAL_ID_METADATA_TYPE = "aws:cdk:logicalId"

DELETE_COMPLETE = "DELETE_COMPLETE"
REVIEW_IN_PROGRESS = "REVIEW_IN_PROGRESS"

CREATION_FAILURE_STATUSES = frozenset({
    "CREATE_FAILED",
    "ROLLBACK_COMPLETE",
    "ROLLBACK_FAILED",
})


class Environment(ValueObject):
    """Target account and region of a stack."""

    account: str
    region: str

    @property
    def name(self) -> str:
        return f"aws://{self.account}/{self.region}"


class StackParameter(ValueObject):
    """A single CloudFormation stack parameter."""

    key: str
    value: str

    def to_api(self) -> dict[str, str]:
        return {"ParameterKey": self.key, "ParameterValue": self.value}


class StackDescriptor(ValueObject):
    """A synthesized stack ready for deployment."""

    name: str
    environment: Environment | None = None
    template: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    parameters: dict[str, str] = Field(default_factory=dict)

    def logical_id_paths(self) -> dict[str, str]:
        """Map logical resource ids to the construct paths that produced them."""
        paths: dict[str, str] = {}
        for path, entries in self.metadata.items():
            for entry in entries:
                if entry.get("type") == LOGICAL_ID_METADATA_TYPE and entry.get("data"):
                    paths[str(entry["data"])] = path
        return paths


class StackStatus(ValueObject):
    """Observed lifecycle state of a stack in the control plane."""

    name: str
    reason: str = ""

    @property
    def is_in_progress(self) -> bool:
        return self.name.endswith("_IN_PROGRESS")

    @property
    def is_stable(self) -> bool:
        return not self.is_in_progress

    @property
    def is_review(self) -> bool:
        return self.name == REVIEW_IN_PROGRESS

    @property
    def is_deleted(self) -> bool:
        return self.name == DELETE_COMPLETE

    @property
    def is_failure(self) -> bool:
        return self.name.endswith("_FAILED")

    @property
    def is_rollback(self) -> bool:
        return "ROLLBACK" in self.name

    @property
    def is_creation_failure(self) -> bool:
        return self.name in CREATION_FAILURE_STATUSES

    @property
    def is_success(self) -> bool:
        return self.is_stable and not self.is_rollback and not self.is_failure

    def __str__(self) -> str:
        if self.reason:
            return f"{self.name} ({self.reason})"
        return self.name


class StackDescription(ValueObject):
    """Snapshot of a stack as returned by a describe call."""

    stack_name: str
    stack_id: str
    status: StackStatus
    outputs: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, stack: dict[str, Any]) -> StackDescription:
        return cls(
            stack_name=stack["StackName"],
            stack_id=stack.get("StackId", ""),
            status=StackStatus(
                name=stack["StackStatus"],
                reason=stack.get("StackStatusReason", ""),
            ),
            outputs={
                output["OutputKey"]: output["OutputValue"]
                for output in stack.get("Outputs", [])
            },
        )


class StackEvent(ValueObject):
    """A single entry of a stack's event history."""

    event_id: str
    stack_name: str
    logical_resource_id: str
    resource_type: str
    resource_status: str
    resource_status_reason: str = ""
    timestamp: datetime

    @property
    def is_stack_event(self) -> bool:
        return self.resource_type == "AWS::CloudFormation::Stack"

    @property
    def is_complete(self) -> bool:
        return self.resource_status.endswith("_COMPLETE")

    @property
    def is_failure(self) -> bool:
        return self.resource_status.endswith("_FAILED")

    @classmethod
    def from_api(cls, event: dict[str, Any]) -> StackEvent:
        return cls(
            event_id=event["EventId"],
            stack_name=event["StackName"],
            logical_resource_id=event.get("LogicalResourceId", ""),
            resource_type=event.get("ResourceType", ""),
            resource_status=event.get("ResourceStatus", ""),
            resource_status_reason=event.get("ResourceStatusReason", ""),
            timestamp=event["Timestamp"],
        )


class TemplateBodyParameter(ValueObject):
    """Inline template body or a reference to an uploaded template."""

    template_body: str | None = None
    template_url: str | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> TemplateBodyParameter:
        if (self.template_body is None) == (self.template_url is None):
            raise ValueError("Exactly one of template_body or template_url must be set")
        return self

    def to_api(self) -> dict[str, str]:
        if self.template_url is not None:
            return {"TemplateURL": self.template_url}
        return {"TemplateBody": str(self.template_body)}


class DeployResult(ValueObject):
    """Outcome of a single deploy call."""

    no_op: bool
    outputs: dict[str, str] = Field(default_factory=dict)
    stack_arn: str
