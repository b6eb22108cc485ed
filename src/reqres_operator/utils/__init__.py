"""Utility functions for the Reqres Operator."""

from .backoff import compute_backoff
from .conditions import (
    remove_condition,
    set_available_condition,
    set_unavailable_condition,
    update_condition,
)
from .context import current_pass, get_context_dict, pass_context
from .events import emit_event
from .rate_limit import rate_limit_k8s, rate_limit_reqres

__all__ = [
    "compute_backoff",
    "update_condition",
    "remove_condition",
    "set_available_condition",
    "set_unavailable_condition",
    "emit_event",
    "rate_limit_k8s",
    "rate_limit_reqres",
    "current_pass",
    "pass_context",
    "get_context_dict",
]
