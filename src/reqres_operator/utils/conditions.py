"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_AVAILABLE, COND_UNAVAILABLE, REASON_REMOTE_UNAVAILABLE


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()

    # Find existing condition
    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def remove_condition(conditions: list[dict[str, Any]], condition_type: str) -> list[dict[str, Any]]:
    """Drop every condition of the given type."""
    conditions[:] = [cond for cond in conditions if cond.get("type") != condition_type]
    return conditions


def set_available_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Available condition, clearing any Unavailable condition."""
    remove_condition(conditions, COND_UNAVAILABLE)
    return update_condition(
        conditions,
        COND_AVAILABLE,
        "True" if status else "False",
        reason,
        message,
        observed_generation,
    )


def set_unavailable_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Unavailable condition to Unknown, clearing any Available condition.

    Used when the remote user cannot be read: it may be gone or the API may be
    having an outage, and the two are indistinguishable.
    """
    remove_condition(conditions, COND_AVAILABLE)
    return update_condition(
        conditions,
        COND_UNAVAILABLE,
        "Unknown",
        REASON_REMOTE_UNAVAILABLE,
        message,
        observed_generation,
    )
