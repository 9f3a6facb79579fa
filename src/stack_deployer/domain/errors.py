"""Errors raised by stack deployment operations."""

from __future__ import annotations


class StackDeployerError(Exception):
    """Base class for all deployment failures raised by this library."""


class StackConfigurationError(StackDeployerError):
    """Raised when a stack is missing its resolved target environment."""


class TemplateTooLargeError(StackDeployerError):
    """Raised when a template is too large to inline and no storage is configured."""

    def __init__(self, stack_name: str, size_bytes: int, limit_kb: int) -> None:
        self.stack_name = stack_name
        self.size_bytes = size_bytes
        self.limit_kb = limit_kb
        super().__init__(
            f'The template for stack "{stack_name}" is {round(size_bytes / 1024)}KiB. '
            f"Templates larger than {limit_kb}KiB must be uploaded to object storage. "
            "Provision toolkit storage for this environment (bootstrap it) and re-deploy."
        )


class StaleStackCleanupError(StackDeployerError):
    """Raised when a stack that failed creation could not be fully deleted."""


class ChangeSetCreationError(StackDeployerError):
    """Raised when the control plane fails to compute a change set."""


class StackNotFoundError(StackDeployerError):
    """Raised when a stack disappears while it is expected to exist."""


class StackWaitTimeoutError(StackDeployerError):
    """Raised when a stack does not settle within the configured wait timeout."""


class StackDeploymentError(StackDeployerError):
    """Raised when a deployment ends in a non-success terminal state."""


class StackDestroyError(StackDeployerError):
    """Raised when a destroyed stack is not in the fully-deleted state."""
