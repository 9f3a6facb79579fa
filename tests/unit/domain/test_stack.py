"""Unit tests for stack domain models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from stack_deployer.domain.models.stack import (
    DeployResult,
    Environment,
    StackDescription,
    StackDescriptor,
    StackEvent,
    StackParameter,
    StackStatus,
    TemplateBodyParameter,
)


class TestEnvironment:
    def test_name(self) -> None:
        env = Environment(account="111111111111", region="eu-west-1")
        assert env.name == "aws://111111111111/eu-west-1"


class TestStackStatus:
    @pytest.mark.parametrize(
        "name",
        ["CREATE_COMPLETE", "UPDATE_COMPLETE", "DELETE_COMPLETE", "IMPORT_COMPLETE"],
    )
    def test_success_states(self, name: str) -> None:
        status = StackStatus(name=name)
        assert status.is_stable
        assert status.is_success
        assert not status.is_failure

    @pytest.mark.parametrize(
        "name",
        [
            "CREATE_FAILED",
            "ROLLBACK_COMPLETE",
            "ROLLBACK_FAILED",
            "UPDATE_ROLLBACK_COMPLETE",
            "UPDATE_ROLLBACK_FAILED",
            "DELETE_FAILED",
        ],
    )
    def test_failure_states(self, name: str) -> None:
        status = StackStatus(name=name)
        assert status.is_stable
        assert not status.is_success

    @pytest.mark.parametrize(
        "name",
        ["CREATE_IN_PROGRESS", "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS", "REVIEW_IN_PROGRESS"],
    )
    def test_in_progress_states(self, name: str) -> None:
        status = StackStatus(name=name)
        assert status.is_in_progress
        assert not status.is_stable
        assert not status.is_success

    def test_creation_failure(self) -> None:
        assert StackStatus(name="CREATE_FAILED").is_creation_failure
        assert StackStatus(name="ROLLBACK_COMPLETE").is_creation_failure
        assert StackStatus(name="ROLLBACK_FAILED").is_creation_failure
        assert not StackStatus(name="UPDATE_ROLLBACK_COMPLETE").is_creation_failure

    def test_deleted_and_review(self) -> None:
        assert StackStatus(name="DELETE_COMPLETE").is_deleted
        assert not StackStatus(name="DELETE_FAILED").is_deleted
        assert StackStatus(name="REVIEW_IN_PROGRESS").is_review

    def test_str_with_reason(self) -> None:
        status = StackStatus(name="DELETE_FAILED", reason="Bucket not empty")
        assert str(status) == "DELETE_FAILED (Bucket not empty)"

    def test_str_without_reason(self) -> None:
        assert str(StackStatus(name="CREATE_COMPLETE")) == "CREATE_COMPLETE"


class TestStackDescriptor:
    def test_logical_id_paths(self) -> None:
        stack = StackDescriptor(
            name="demo",
            metadata={
                "/demo/Bucket/Resource": [
                    {"type": "aws:cdk:logicalId", "data": "Bucket83908E77"},
                    {"type": "aws:cdk:warning", "data": "ignored"},
                ],
                "/demo": [{"type": "aws:cdk:info", "data": "stack"}],
            },
        )
        assert stack.logical_id_paths() == {"Bucket83908E77": "/demo/Bucket/Resource"}

    def test_environment_optional(self) -> None:
        stack = StackDescriptor(name="demo")
        assert stack.environment is None
        assert stack.parameters == {}

    def test_immutable(self) -> None:
        stack = StackDescriptor(name="demo")
        with pytest.raises(ValidationError):
            stack.name = "other"  # type: ignore[misc]


class TestStackDescription:
    def test_from_api(self) -> None:
        description = StackDescription.from_api({
            "StackName": "demo",
            "StackId": "arn:aws:cloudformation:us-east-1:123456789012:stack/demo/abc",
            "StackStatus": "UPDATE_COMPLETE",
            "Outputs": [
                {"OutputKey": "BucketName", "OutputValue": "demo-bucket"},
                {"OutputKey": "QueueUrl", "OutputValue": "https://sqs/demo"},
            ],
        })
        assert description.status.name == "UPDATE_COMPLETE"
        assert description.outputs == {
            "BucketName": "demo-bucket",
            "QueueUrl": "https://sqs/demo",
        }

    def test_from_api_without_outputs(self) -> None:
        description = StackDescription.from_api({
            "StackName": "demo",
            "StackStatus": "CREATE_IN_PROGRESS",
            "StackStatusReason": "User Initiated",
        })
        assert description.outputs == {}
        assert description.stack_id == ""
        assert description.status.reason == "User Initiated"


class TestStackEvent:
    def test_classification(self) -> None:
        now = datetime.now(timezone.utc)
        stack_event = StackEvent(
            event_id="1",
            stack_name="demo",
            logical_resource_id="demo",
            resource_type="AWS::CloudFormation::Stack",
            resource_status="CREATE_COMPLETE",
            timestamp=now,
        )
        resource_event = StackEvent(
            event_id="2",
            stack_name="demo",
            logical_resource_id="Bucket",
            resource_type="AWS::S3::Bucket",
            resource_status="CREATE_FAILED",
            timestamp=now,
        )
        assert stack_event.is_stack_event
        assert stack_event.is_complete
        assert not resource_event.is_stack_event
        assert resource_event.is_failure


class TestTemplateBodyParameter:
    def test_inline_body(self) -> None:
        body = TemplateBodyParameter(template_body="Resources: {}")
        assert body.to_api() == {"TemplateBody": "Resources: {}"}

    def test_url(self) -> None:
        body = TemplateBodyParameter(template_url="https://bucket/key.yml")
        assert body.to_api() == {"TemplateURL": "https://bucket/key.yml"}

    def test_requires_exactly_one(self) -> None:
        with pytest.raises(ValidationError):
            TemplateBodyParameter()
        with pytest.raises(ValidationError):
            TemplateBodyParameter(template_body="a", template_url="b")


class TestStackParameter:
    def test_to_api(self) -> None:
        param = StackParameter(key="AssetBucket", value="my-bucket")
        assert param.to_api() == {"ParameterKey": "AssetBucket", "ParameterValue": "my-bucket"}


class TestDeployResult:
    def test_frozen(self) -> None:
        result = DeployResult(no_op=True, stack_arn="arn:stack")
        assert result.outputs == {}
        with pytest.raises(ValidationError):
            result.no_op = False  # type: ignore[misc]
