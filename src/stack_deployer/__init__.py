"""Deploy synthesized CloudFormation templates through change sets."""

from stack_deployer.domain.errors import (
    ChangeSetCreationError,
    StackConfigurationError,
    StackDeployerError,
    StackDeploymentError,
    StackDestroyError,
    StackNotFoundError,
    StackWaitTimeoutError,
    StaleStackCleanupError,
    TemplateTooLargeError,
)
from stack_deployer.domain.models import DeployResult, Environment, StackDescriptor
from stack_deployer.domain.services.deploy_service import deploy_stack, destroy_stack


__all__ = [
    "ChangeSetCreationError",
    "DeployResult",
    "Environment",
    "StackConfigurationError",
    "StackDeployerError",
    "StackDeploymentError",
    "StackDescriptor",
    "StackDestroyError",
    "StackNotFoundError",
    "StackWaitTimeoutError",
    "StaleStackCleanupError",
    "TemplateTooLargeError",
    "deploy_stack",
    "destroy_stack",
]
