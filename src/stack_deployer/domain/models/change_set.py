"""Change set domain models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from stack_deployer.domain.models.base import ValueObject
from stack_deployer.domain.models.stack import StackParameter, TemplateBodyParameter


# Managed policies may be part of any template, so both are always requested.
REQUIRED_CAPABILITIES: tuple[str, ...] = ("CAPABILITY_IAM", "CAPABILITY_NAMED_IAM")

# Reasons the control plane gives when a change set is FAILED only because it is empty.
NO_CHANGES_REASONS: tuple[str, ...] = (
    "The submitted information didn't contain changes.",
    "No updates are to be performed.",
)


class ChangeSetType(str, Enum):
    """Whether a change set creates a new stack or updates an existing one."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"


class ChangeSetStatus(str, Enum):
    """Change set lifecycle states."""

    CREATE_PENDING = "CREATE_PENDING"
    CREATE_IN_PROGRESS = "CREATE_IN_PROGRESS"
    CREATE_COMPLETE = "CREATE_COMPLETE"
    DELETE_PENDING = "DELETE_PENDING"
    DELETE_IN_PROGRESS = "DELETE_IN_PROGRESS"
    DELETE_COMPLETE = "DELETE_COMPLETE"
    DELETE_FAILED = "DELETE_FAILED"
    FAILED = "FAILED"

    @property
    def is_pending(self) -> bool:
        return self in (ChangeSetStatus.CREATE_PENDING, ChangeSetStatus.CREATE_IN_PROGRESS)


class ChangeSetRequest(ValueObject):
    """Every field recognised when submitting a change set."""

    stack_name: str
    change_set_name: str
    change_set_type: ChangeSetType
    description: str = ""
    body: TemplateBodyParameter
    parameters: list[StackParameter] = Field(default_factory=list)
    role_arn: str | None = None
    capabilities: tuple[str, ...] = REQUIRED_CAPABILITIES

    def to_api_kwargs(self) -> dict[str, Any]:
        """Render the CreateChangeSet request, omitting unset optional fields."""
        kwargs: dict[str, Any] = {
            "StackName": self.stack_name,
            "ChangeSetName": self.change_set_name,
            "ChangeSetType": self.change_set_type.value,
            "Parameters": [p.to_api() for p in self.parameters],
            "Capabilities": list(self.capabilities),
            **self.body.to_api(),
        }
        if self.description:
            kwargs["Description"] = self.description
        if self.role_arn:
            kwargs["RoleARN"] = self.role_arn
        return kwargs


class ChangeSetDescription(ValueObject):
    """Control plane view of a change set."""

    change_set_id: str = ""
    change_set_name: str = ""
    stack_id: str = ""
    status: ChangeSetStatus = ChangeSetStatus.CREATE_PENDING
    status_reason: str = ""
    changes: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return len(self.changes) > 0

    @property
    def is_empty_failure(self) -> bool:
        """True when the change set FAILED only because nothing would change."""
        return self.status == ChangeSetStatus.FAILED and self.status_reason.startswith(
            NO_CHANGES_REASONS
        )

    @classmethod
    def from_api(cls, response: dict[str, Any]) -> ChangeSetDescription:
        return cls(
            change_set_id=response.get("ChangeSetId", ""),
            change_set_name=response.get("ChangeSetName", ""),
            stack_id=response.get("StackId", ""),
            status=ChangeSetStatus(response.get("Status", ChangeSetStatus.CREATE_PENDING.value)),
            status_reason=response.get("StatusReason", ""),
            changes=list(response.get("Changes", [])),
        )
