"""Prometheus metrics for the Reqres Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "reqres_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "reqres_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Drift detection metrics
drift_detected_total = Counter(
    "reqres_operator_drift_detected_total",
    "Total number of drifted fields detected on remote users",
    ["kind", "field"],
)

# API call metrics
api_call_total = Counter(
    "reqres_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "reqres_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

# Error metrics
error_total = Counter(
    "reqres_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Resource status metrics
resource_status_total = Counter(
    "reqres_operator_resource_status_total",
    "Resource status transitions",
    ["kind", "status"],
)
