"""Deploy and destroy orchestration for a single stack."""

from __future__ import annotations

import contextlib
import time
import uuid
from typing import Any

import structlog

from stack_deployer.config import DeployerSettings, get_settings
from stack_deployer.domain.errors import (
    StackConfigurationError,
    StackDeploymentError,
    StackDestroyError,
    TemplateTooLargeError,
)
from stack_deployer.domain.models.stack import (
    DeployResult,
    Environment,
    StackDescriptor,
    TemplateBodyParameter,
)
from stack_deployer.domain.ports.services import (
    ActivityRenderer,
    AssetPreparer,
    ClientMode,
    CloudFormationClient,
    CloudFormationClientFactory,
    ToolkitInfo,
)
from stack_deployer.domain.services.activity_monitor import StackActivityMonitor
from stack_deployer.domain.services.change_set_manager import (
    ChangeSetManager,
    change_set_name_for,
)
from stack_deployer.domain.services.stack_poller import StackStatusPoller
from stack_deployer.infrastructure.observability.metrics import (
    STACK_OPERATION_DURATION,
    STACK_OPERATIONS_TOTAL,
)
from stack_deployer.infrastructure.observability.tracing import get_tracer
from stack_deployer.infrastructure.templates.assets import DescriptorParameterPreparer
from stack_deployer.infrastructure.templates.serializer import serialize_template


logger = structlog.get_logger(__name__)

TEMPLATE_CONTENT_TYPE = "application/x-yaml"
TEMPLATE_KEY_SUFFIX = ".yml"


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _require_environment(stack: StackDescriptor) -> Environment:
    if stack.environment is None:
        raise StackConfigurationError(f"The stack {stack.name} does not have an environment")
    return stack.environment


def _poller_for(client: CloudFormationClient, settings: DeployerSettings) -> StackStatusPoller:
    return StackStatusPoller(
        client,
        poll_interval=settings.poll_interval,
        change_set_poll_interval=settings.change_set_poll_interval,
        wait_timeout=settings.wait_timeout,
    )


def _activity_monitor(
    client: CloudFormationClient,
    deploy_name: str,
    settings: DeployerSettings,
    quiet: bool,
    renderer: ActivityRenderer | None,
    resource_paths: dict[str, str] | None = None,
    resources_total: int | None = None,
) -> contextlib.AbstractAsyncContextManager[Any]:
    if quiet:
        return contextlib.nullcontext()
    return StackActivityMonitor(
        client,
        deploy_name,
        resource_paths=resource_paths,
        resources_total=resources_total,
        renderer=renderer,
        interval=settings.monitor_interval,
    )


async def make_body_parameter(
    stack: StackDescriptor,
    toolkit_info: ToolkitInfo | None,
    settings: DeployerSettings,
) -> TemplateBodyParameter:
    """Inline the template, or upload it when toolkit storage is available.

    With storage configured the template is always uploaded regardless of
    size. Without it, templates above the inline limit are rejected.
    """
    body = serialize_template(stack.template)

    if toolkit_info is not None:
        upload = await toolkit_info.upload_if_changed(
            body,
            key_prefix=f"{settings.template_key_prefix}/{stack.name}/",
            key_suffix=TEMPLATE_KEY_SUFFIX,
            content_type=TEMPLATE_CONTENT_TYPE,
        )
        template_url = f"{toolkit_info.bucket_url}/{upload.key}"
        logger.debug("template_stored", stack_name=stack.name, template_url=template_url)
        return TemplateBodyParameter(template_url=template_url)

    size_bytes = len(body.encode("utf-8"))
    if size_bytes > settings.large_template_size_bytes:
        raise TemplateTooLargeError(stack.name, size_bytes, settings.large_template_size_kb)

    return TemplateBodyParameter(template_body=body)


# ------------------------------------------------------------------
# Operations
# ------------------------------------------------------------------


async def deploy_stack(
    stack: StackDescriptor,
    client_factory: CloudFormationClientFactory,
    *,
    toolkit_info: ToolkitInfo | None = None,
    role_arn: str | None = None,
    deploy_name: str | None = None,
    quiet: bool = False,
    asset_preparer: AssetPreparer | None = None,
    renderer: ActivityRenderer | None = None,
    settings: DeployerSettings | None = None,
) -> DeployResult:
    """Create or update a stack through a change set.

    Returns a no-op result when the change set turns out to be empty; the
    change set is deleted in that case so nothing is left behind.
    """
    environment = _require_environment(stack)
    settings = settings or get_settings().deployer
    deploy_name = deploy_name or stack.name
    started = time.monotonic()

    with get_tracer().start_as_current_span("deploy_stack") as span:
        span.set_attribute("stack.name", deploy_name)
        span.set_attribute("stack.environment", environment.name)
        try:
            result = await _deploy(
                stack,
                environment,
                client_factory,
                deploy_name=deploy_name,
                toolkit_info=toolkit_info,
                role_arn=role_arn,
                quiet=quiet,
                asset_preparer=asset_preparer or DescriptorParameterPreparer(),
                renderer=renderer,
                settings=settings,
            )
        except Exception:
            STACK_OPERATIONS_TOTAL.labels(operation="deploy", result="failed").inc()
            raise
        span.set_attribute("stack.no_op", result.no_op)

    STACK_OPERATIONS_TOTAL.labels(
        operation="deploy", result="no_op" if result.no_op else "success"
    ).inc()
    STACK_OPERATION_DURATION.labels(operation="deploy").observe(time.monotonic() - started)
    return result


async def _deploy(
    stack: StackDescriptor,
    environment: Environment,
    client_factory: CloudFormationClientFactory,
    *,
    deploy_name: str,
    toolkit_info: ToolkitInfo | None,
    role_arn: str | None,
    quiet: bool,
    asset_preparer: AssetPreparer,
    renderer: ActivityRenderer | None,
    settings: DeployerSettings,
) -> DeployResult:
    parameters = await asset_preparer.prepare(stack, toolkit_info)
    execution_id = str(uuid.uuid4())
    log = logger.bind(stack_name=deploy_name, execution_id=execution_id)

    client = await client_factory.cloudformation(environment, ClientMode.FOR_WRITING)
    body = await make_body_parameter(stack, toolkit_info, settings)

    poller = _poller_for(client, settings)
    manager = ChangeSetManager(client, poller)

    if await manager.clean_up_failed_stack(deploy_name):
        log.info("failed_stack_removed")

    update = await poller.exists(deploy_name)
    change_set_name = change_set_name_for(execution_id, settings.change_set_prefix)
    log.info(
        "change_set_requested",
        change_set_name=change_set_name,
        action="update" if update else "create",
    )

    created, change_set = await manager.create(
        deploy_name,
        change_set_name,
        update=update,
        body=body,
        parameters=parameters,
        role_arn=role_arn,
        execution_id=execution_id,
    )

    if not change_set.has_changes:
        log.info("no_changes_to_deploy", change_set_name=change_set_name)
        await manager.discard(deploy_name, change_set_name)
        current = await poller.describe(deploy_name)
        return DeployResult(
            no_op=True,
            outputs=current.outputs if current else {},
            stack_arn=created.stack_id,
        )

    monitor = _activity_monitor(
        client,
        deploy_name,
        settings,
        quiet,
        renderer,
        resource_paths=stack.logical_id_paths(),
        resources_total=len(change_set.changes),
    )
    async with monitor:
        await manager.execute(deploy_name, change_set_name)
        log.info("change_set_execution_started", change_count=len(change_set.changes))
        final = await poller.wait_for_stack(deploy_name)

    if final is None or final.status.is_deleted or not final.status.is_success:
        status = final.status if final else "NOT_FOUND"
        raise StackDeploymentError(f"Failed to deploy {deploy_name}: {status}")

    log.info("stack_deployed", status=final.status.name)
    return DeployResult(no_op=False, outputs=final.outputs, stack_arn=created.stack_id)


async def destroy_stack(
    stack: StackDescriptor,
    client_factory: CloudFormationClientFactory,
    *,
    role_arn: str | None = None,
    deploy_name: str | None = None,
    quiet: bool = False,
    renderer: ActivityRenderer | None = None,
    settings: DeployerSettings | None = None,
) -> None:
    """Delete a stack and verify it is gone. Missing stacks are a no-op."""
    environment = _require_environment(stack)
    settings = settings or get_settings().deployer
    deploy_name = deploy_name or stack.name
    started = time.monotonic()

    with get_tracer().start_as_current_span("destroy_stack") as span:
        span.set_attribute("stack.name", deploy_name)
        span.set_attribute("stack.environment", environment.name)
        try:
            destroyed = await _destroy(
                environment,
                client_factory,
                deploy_name=deploy_name,
                role_arn=role_arn,
                quiet=quiet,
                renderer=renderer,
                settings=settings,
            )
        except Exception:
            STACK_OPERATIONS_TOTAL.labels(operation="destroy", result="failed").inc()
            raise

    STACK_OPERATIONS_TOTAL.labels(
        operation="destroy", result="success" if destroyed else "skipped"
    ).inc()
    STACK_OPERATION_DURATION.labels(operation="destroy").observe(time.monotonic() - started)


async def _destroy(
    environment: Environment,
    client_factory: CloudFormationClientFactory,
    *,
    deploy_name: str,
    role_arn: str | None,
    quiet: bool,
    renderer: ActivityRenderer | None,
    settings: DeployerSettings,
) -> bool:
    client = await client_factory.cloudformation(environment, ClientMode.FOR_WRITING)
    poller = _poller_for(client, settings)

    current = await poller.describe(deploy_name)
    if current is None or current.status.is_deleted:
        logger.info("stack_absent_nothing_to_destroy", stack_name=deploy_name)
        return False

    async with _activity_monitor(client, deploy_name, settings, quiet, renderer):
        await client.delete_stack(deploy_name, role_arn=role_arn)
        destroyed = await poller.wait_for_stack(deploy_name, expect_deletion=True)

    if destroyed is not None and not destroyed.status.is_deleted:
        raise StackDestroyError(f"Failed to destroy {deploy_name}: {destroyed.status}")

    logger.info("stack_destroyed", stack_name=deploy_name)
    return True
