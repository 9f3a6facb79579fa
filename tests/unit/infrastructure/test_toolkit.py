"""Unit tests for toolkit template storage."""

from __future__ import annotations

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import ANY, Stubber

from stack_deployer.infrastructure.storage.toolkit import (
    InMemoryToolkitInfo,
    S3ToolkitInfo,
    content_key,
)


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


class TestContentKey:
    def test_deterministic(self) -> None:
        first = content_key("Resources: {}", "templates/demo/", ".yml")
        second = content_key("Resources: {}", "templates/demo/", ".yml")
        assert first == second
        assert first.startswith("templates/demo/")
        assert first.endswith(".yml")

    def test_content_sensitive(self) -> None:
        assert content_key("a", "p/", ".yml") != content_key("b", "p/", ".yml")


class TestInMemoryToolkitInfo:
    @pytest.mark.asyncio
    async def test_upload_once(self) -> None:
        toolkit = InMemoryToolkitInfo(bucket_url="https://bucket.example")
        first = await toolkit.upload_if_changed("body", "templates/x/", ".yml", "application/x-yaml")
        second = await toolkit.upload_if_changed("body", "templates/x/", ".yml", "application/x-yaml")

        assert first.changed is True
        assert second.changed is False
        assert first.key == second.key
        assert len(toolkit.objects) == 1

    @pytest.mark.asyncio
    async def test_get_by_url(self) -> None:
        toolkit = InMemoryToolkitInfo(bucket_url="https://bucket.example")
        result = await toolkit.upload_if_changed("body", "t/", ".yml", "application/x-yaml")

        assert toolkit.get_by_url(f"https://bucket.example/{result.key}") == "body"
        assert toolkit.get_by_url("https://elsewhere.example/key.yml") is None
        assert toolkit.get_by_url("https://bucket.example/missing.yml") is None


class TestS3ToolkitInfo:
    def test_default_bucket_url(self, s3_client) -> None:
        toolkit = S3ToolkitInfo(s3_client, "cdk-assets")
        assert toolkit.bucket_url == "https://cdk-assets.s3.amazonaws.com"
        assert toolkit.bucket_name == "cdk-assets"

    @pytest.mark.asyncio
    async def test_uploads_missing_object(self, s3_client) -> None:
        key = content_key("Resources: {}\n", "templates/demo/", ".yml")
        stubber = Stubber(s3_client)
        stubber.add_client_error(
            "head_object",
            service_error_code="404",
            http_status_code=404,
            expected_params={"Bucket": "cdk-assets", "Key": key},
        )
        stubber.add_response(
            "put_object",
            {},
            expected_params={
                "Bucket": "cdk-assets",
                "Key": key,
                "Body": ANY,
                "ContentType": "application/x-yaml",
            },
        )

        with stubber:
            result = await S3ToolkitInfo(s3_client, "cdk-assets").upload_if_changed(
                "Resources: {}\n", "templates/demo/", ".yml", "application/x-yaml"
            )

        assert result.key == key
        assert result.changed is True
        stubber.assert_no_pending_responses()

    @pytest.mark.asyncio
    async def test_skips_existing_object(self, s3_client) -> None:
        stubber = Stubber(s3_client)
        stubber.add_response("head_object", {"ContentLength": 14})

        with stubber:
            result = await S3ToolkitInfo(s3_client, "cdk-assets").upload_if_changed(
                "Resources: {}\n", "templates/demo/", ".yml", "application/x-yaml"
            )

        assert result.changed is False
        stubber.assert_no_pending_responses()

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, s3_client) -> None:
        stubber = Stubber(s3_client)
        stubber.add_client_error(
            "head_object", service_error_code="403", http_status_code=403
        )

        with stubber, pytest.raises(ClientError):
            await S3ToolkitInfo(s3_client, "cdk-assets").upload_if_changed(
                "body", "t/", ".yml", "application/x-yaml"
            )
