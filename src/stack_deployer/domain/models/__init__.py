"""Domain models package."""

from stack_deployer.domain.models.base import (
    generate_id,
    utc_now,
    ValueObject,
)
from stack_deployer.domain.models.change_set import (
    ChangeSetDescription,
    ChangeSetRequest,
    ChangeSetStatus,
    ChangeSetType,
    NO_CHANGES_REASONS,
    REQUIRED_CAPABILITIES,
)
from stack_deployer.domain.models.stack import (
    CREATION_FAILURE_STATUSES,
    DeployResult,
    Environment,
    LOGICAL_ID_METADATA_TYPE,
    StackDescription,
    StackDescriptor,
    StackEvent,
    StackParameter,
    StackStatus,
    TemplateBodyParameter,
)


__all__ = [
    "CREATION_FAILURE_STATUSES",
    "ChangeSetDescription",
    "ChangeSetRequest",
    "ChangeSetStatus",
    "ChangeSetType",
    "DeployResult",
    "Environment",
    "LOGICAL_ID_METADATA_TYPE",
    "NO_CHANGES_REASONS",
    "REQUIRED_CAPABILITIES",
    "StackDescription",
    "StackDescriptor",
    "StackEvent",
    "StackParameter",
    "StackStatus",
    "TemplateBodyParameter",
    "ValueObject",
    "generate_id",
    "utc_now",
]
