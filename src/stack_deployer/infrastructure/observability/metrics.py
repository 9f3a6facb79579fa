"""Prometheus metrics for stack operations."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Histogram,
)


STACK_OPERATIONS_TOTAL = Counter(
    "stack_deployer_operations_total",
    "Total number of deploy and destroy operations",
    ["operation", "result"],  # result: success/no_op/skipped/failed
)

STACK_OPERATION_DURATION = Histogram(
    "stack_deployer_operation_duration_seconds",
    "Time taken for deploy and destroy operations",
    ["operation"],
    buckets=[10, 30, 60, 120, 300, 600, 1800, 3600],
)

CHANGE_SETS_TOTAL = Counter(
    "stack_deployer_change_sets_total",
    "Total number of change sets created",
    ["change_set_type", "outcome"],  # outcome: changes/empty
)

TEMPLATE_UPLOADS_TOTAL = Counter(
    "stack_deployer_template_uploads_total",
    "Total number of template upload attempts",
    ["result"],  # uploaded/unchanged
)

STACK_EVENTS_OBSERVED = Counter(
    "stack_deployer_stack_events_total",
    "Total number of stack events reported by the activity monitor",
    ["resource_status"],
)
