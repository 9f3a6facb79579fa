"""boto3 implementation of the control-plane client."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import boto3
import structlog
from botocore.exceptions import ClientError

from stack_deployer.domain.models.change_set import ChangeSetDescription, ChangeSetRequest
from stack_deployer.domain.models.stack import Environment, StackDescription, StackEvent
from stack_deployer.domain.ports.services import (
    ClientMode,
    CloudFormationClient,
    CloudFormationClientFactory,
)


logger = structlog.get_logger(__name__)


def is_stack_missing(error: ClientError) -> bool:
    """True for the validation error returned when a stack does not exist."""
    err = error.response.get("Error", {})
    return err.get("Code") == "ValidationError" and "does not exist" in err.get("Message", "")


class Boto3CloudFormationClient(CloudFormationClient):
    """CloudFormation client running blocking boto3 calls in worker threads."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        method = getattr(self._client, operation)
        return dict(await asyncio.to_thread(method, **kwargs))

    async def create_change_set(self, request: ChangeSetRequest) -> ChangeSetDescription:
        response = await self._call("create_change_set", **request.to_api_kwargs())
        return ChangeSetDescription(
            change_set_id=response.get("Id", ""),
            change_set_name=request.change_set_name,
            stack_id=response.get("StackId", ""),
        )

    async def describe_change_set(
        self, stack_name: str, change_set_name: str
    ) -> ChangeSetDescription:
        kwargs: dict[str, Any] = {"StackName": stack_name, "ChangeSetName": change_set_name}
        response = await self._call("describe_change_set", **kwargs)
        changes = list(response.get("Changes", []))

        next_token = response.get("NextToken")
        while next_token:
            page = await self._call("describe_change_set", NextToken=next_token, **kwargs)
            changes.extend(page.get("Changes", []))
            next_token = page.get("NextToken")

        response["Changes"] = changes
        return ChangeSetDescription.from_api(response)

    async def execute_change_set(self, stack_name: str, change_set_name: str) -> None:
        await self._call(
            "execute_change_set", StackName=stack_name, ChangeSetName=change_set_name
        )

    async def delete_change_set(self, stack_name: str, change_set_name: str) -> None:
        await self._call(
            "delete_change_set", StackName=stack_name, ChangeSetName=change_set_name
        )

    async def describe_stack(self, stack_name: str) -> StackDescription | None:
        try:
            response = await self._call("describe_stacks", StackName=stack_name)
        except ClientError as e:
            if is_stack_missing(e):
                return None
            raise

        stacks = response.get("Stacks", [])
        if not stacks:
            return None
        return StackDescription.from_api(stacks[0])

    async def delete_stack(self, stack_name: str, role_arn: str | None = None) -> None:
        kwargs: dict[str, Any] = {"StackName": stack_name}
        if role_arn:
            kwargs["RoleARN"] = role_arn
        await self._call("delete_stack", **kwargs)

    async def describe_stack_events(
        self, stack_name: str, next_token: str | None = None
    ) -> tuple[list[StackEvent], str | None]:
        kwargs: dict[str, Any] = {"StackName": stack_name}
        if next_token:
            kwargs["NextToken"] = next_token
        try:
            response = await self._call("describe_stack_events", **kwargs)
        except ClientError as e:
            if is_stack_missing(e):
                return [], None
            raise
        events = [StackEvent.from_api(e) for e in response.get("StackEvents", [])]
        return events, response.get("NextToken")


class Boto3ClientFactory(CloudFormationClientFactory):
    """Hands out CloudFormation clients from per-region boto3 sessions.

    Credentials come from whatever the session provider resolves; the
    default builds a plain ``boto3.Session`` for the environment's region.
    Clients are cached per environment and mode for the factory's lifetime.
    """

    def __init__(
        self,
        session_provider: Callable[[Environment, ClientMode], boto3.Session] | None = None,
    ) -> None:
        self._session_provider = session_provider or self._default_session
        self._clients: dict[tuple[str, ClientMode], Boto3CloudFormationClient] = {}

    @staticmethod
    def _default_session(environment: Environment, _mode: ClientMode) -> boto3.Session:
        return boto3.Session(region_name=environment.region)

    async def cloudformation(
        self, environment: Environment, mode: ClientMode
    ) -> CloudFormationClient:
        cache_key = (environment.name, mode)
        if cache_key not in self._clients:
            session = self._session_provider(environment, mode)
            self._clients[cache_key] = Boto3CloudFormationClient(
                session.client("cloudformation", region_name=environment.region)
            )
            logger.debug(
                "cloudformation_client_created",
                environment=environment.name,
                mode=mode.value,
            )
        return self._clients[cache_key]

    def s3_client(self, environment: Environment) -> Any:
        """Get a raw S3 client for building toolkit storage in an environment."""
        session = self._session_provider(environment, ClientMode.FOR_WRITING)
        return session.client("s3", region_name=environment.region)
