"""Default asset preparation."""

from __future__ import annotations

from stack_deployer.domain.models.stack import StackDescriptor, StackParameter
from stack_deployer.domain.ports.services import AssetPreparer, ToolkitInfo


class DescriptorParameterPreparer(AssetPreparer):
    """Uses the parameters already attached to the stack; publishes nothing."""

    async def prepare(
        self, stack: StackDescriptor, toolkit_info: ToolkitInfo | None
    ) -> list[StackParameter]:
        return [StackParameter(key=k, value=v) for k, v in stack.parameters.items()]
