"""Service port interfaces (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from stack_deployer.domain.models.base import ValueObject
from stack_deployer.domain.models.change_set import ChangeSetDescription, ChangeSetRequest
from stack_deployer.domain.models.stack import (
    Environment,
    StackDescription,
    StackDescriptor,
    StackEvent,
    StackParameter,
)


class ClientMode(str, Enum):
    """What a control-plane client will be used for."""

    FOR_READING = "for_reading"
    FOR_WRITING = "for_writing"


class UploadResult(ValueObject):
    """Where an uploaded object lives and whether this call stored it."""

    key: str
    changed: bool


class CloudFormationClient(ABC):
    """Port for the stack control plane."""

    @abstractmethod
    async def create_change_set(self, request: ChangeSetRequest) -> ChangeSetDescription:
        """Submit a change set. Returns its id and the stack id."""

    @abstractmethod
    async def describe_change_set(
        self, stack_name: str, change_set_name: str
    ) -> ChangeSetDescription:
        """Describe a change set including all proposed changes."""

    @abstractmethod
    async def execute_change_set(self, stack_name: str, change_set_name: str) -> None:
        """Start executing a change set."""

    @abstractmethod
    async def delete_change_set(self, stack_name: str, change_set_name: str) -> None:
        """Delete an unexecuted change set."""

    @abstractmethod
    async def describe_stack(self, stack_name: str) -> StackDescription | None:
        """Describe a stack. Returns None when it does not exist."""

    @abstractmethod
    async def delete_stack(self, stack_name: str, role_arn: str | None = None) -> None:
        """Request deletion of a stack."""

    @abstractmethod
    async def describe_stack_events(
        self, stack_name: str, next_token: str | None = None
    ) -> tuple[list[StackEvent], str | None]:
        """Get one page of stack events, newest first.

        A stack that does not exist (or no longer exists under this name)
        has no events: an empty page with no token is returned.
        """


class CloudFormationClientFactory(ABC):
    """Port handing out authenticated control-plane clients."""

    @abstractmethod
    async def cloudformation(
        self, environment: Environment, mode: ClientMode
    ) -> CloudFormationClient:
        """Get a client scoped to an environment."""


class ToolkitInfo(ABC):
    """Port for the object storage that holds large templates."""

    @property
    @abstractmethod
    def bucket_url(self) -> str:
        """Base URL objects are retrievable under."""

    @abstractmethod
    async def upload_if_changed(
        self,
        content: str,
        key_prefix: str,
        key_suffix: str,
        content_type: str,
    ) -> UploadResult:
        """Store content under a content-derived key unless already present."""


class AssetPreparer(ABC):
    """Port resolving stack assets into deployment parameters."""

    @abstractmethod
    async def prepare(
        self, stack: StackDescriptor, toolkit_info: ToolkitInfo | None
    ) -> list[StackParameter]:
        """Publish assets and return the parameters that reference them."""


class ActivityRenderer(ABC):
    """Port receiving stack activity while a deployment is in flight."""

    @abstractmethod
    def render(
        self, event: StackEvent, progress: str | None, resource_path: str | None
    ) -> None:
        """Report a single new stack event."""

    @abstractmethod
    def finish(self, failures: list[StackEvent]) -> None:
        """Report the end of monitoring with any failed resource events."""
