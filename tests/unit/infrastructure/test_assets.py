"""Unit tests for default asset preparation."""

from __future__ import annotations

import pytest

from stack_deployer.domain.models.stack import StackDescriptor, StackParameter
from stack_deployer.infrastructure.templates.assets import DescriptorParameterPreparer


class TestDescriptorParameterPreparer:
    @pytest.mark.asyncio
    async def test_uses_descriptor_parameters(self) -> None:
        stack = StackDescriptor(name="demo", parameters={"Env": "prod", "Size": "3"})

        parameters = await DescriptorParameterPreparer().prepare(stack, None)

        assert parameters == [
            StackParameter(key="Env", value="prod"),
            StackParameter(key="Size", value="3"),
        ]

    @pytest.mark.asyncio
    async def test_no_parameters(self) -> None:
        assert await DescriptorParameterPreparer().prepare(StackDescriptor(name="demo"), None) == []
