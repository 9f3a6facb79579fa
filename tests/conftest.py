"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from stack_deployer.config import DeployerSettings
from stack_deployer.domain.models.stack import Environment, StackDescriptor
from stack_deployer.infrastructure.cloudformation.simulated import (
    SimulatedClientFactory,
    SimulatedCloudFormationClient,
)
from stack_deployer.infrastructure.observability.activity import CollectingActivityRenderer
from stack_deployer.infrastructure.storage.toolkit import InMemoryToolkitInfo


@pytest.fixture
def environment() -> Environment:
    return Environment(account="123456789012", region="us-east-1")


@pytest.fixture
def deployer_settings() -> DeployerSettings:
    return DeployerSettings(
        poll_interval=0.0,
        change_set_poll_interval=0.0,
        monitor_interval=0.0,
        large_template_size_kb=50,
        change_set_prefix="Deploy-",
        template_key_prefix="templates",
    )


@pytest.fixture
def toolkit() -> InMemoryToolkitInfo:
    return InMemoryToolkitInfo(bucket_url="https://toolkit-bucket.s3.amazonaws.com")


@pytest.fixture
def cfn(environment: Environment, toolkit: InMemoryToolkitInfo) -> SimulatedCloudFormationClient:
    return SimulatedCloudFormationClient(environment=environment, template_store=toolkit)


@pytest.fixture
def client_factory(cfn: SimulatedCloudFormationClient) -> SimulatedClientFactory:
    return SimulatedClientFactory(cfn)


@pytest.fixture
def renderer() -> CollectingActivityRenderer:
    return CollectingActivityRenderer()


@pytest.fixture
def sample_template() -> dict[str, Any]:
    return {
        "Resources": {
            "Bucket83908E77": {"Type": "AWS::S3::Bucket"},
            "Queue4A7E3555": {
                "Type": "AWS::SQS::Queue",
                "Properties": {"VisibilityTimeout": 300},
            },
        },
        "Outputs": {
            "BucketName": {"Value": "demo-bucket"},
        },
    }


@pytest.fixture
def sample_stack(environment: Environment, sample_template: dict[str, Any]) -> StackDescriptor:
    return StackDescriptor(
        name="demo",
        environment=environment,
        template=sample_template,
        metadata={
            "/demo/Bucket/Resource": [
                {"type": "aws:cdk:logicalId", "data": "Bucket83908E77"},
            ],
            "/demo/Queue/Resource": [
                {"type": "aws:cdk:logicalId", "data": "Queue4A7E3555"},
            ],
        },
    )


@pytest.fixture
def large_template() -> dict[str, Any]:
    return {
        "Resources": {
            f"Topic{i:04d}": {
                "Type": "AWS::SNS::Topic",
                "Properties": {"DisplayName": "x" * 120},
            }
            for i in range(600)
        },
    }
