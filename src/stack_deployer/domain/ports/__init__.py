"""Domain ports package."""

from stack_deployer.domain.ports.services import (
    ActivityRenderer,
    AssetPreparer,
    ClientMode,
    CloudFormationClient,
    CloudFormationClientFactory,
    ToolkitInfo,
    UploadResult,
)


__all__ = [
    "ActivityRenderer",
    "AssetPreparer",
    "ClientMode",
    "CloudFormationClient",
    "CloudFormationClientFactory",
    "ToolkitInfo",
    "UploadResult",
]
