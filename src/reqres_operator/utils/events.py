"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_USER_CREATED,
    EVENT_REASON_USER_DELETED,
    EVENT_REASON_USER_UNAVAILABLE,
    EVENT_REASON_USER_UPDATED,
    EVENT_REASON_VALIDATE_FAILED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    # events need an object reference to attach to
    if not body.get("metadata"):
        return
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_failed(body: dict[str, Any], message: str) -> None:
    """Emit validation failed event."""
    emit_event(body, EVENT_REASON_VALIDATE_FAILED, message, type_="Warning")


def emit_user_created(body: dict[str, Any], remote_id: int) -> None:
    """Emit user created event."""
    emit_event(body, EVENT_REASON_USER_CREATED, f"Remote user {remote_id} created")


def emit_user_updated(body: dict[str, Any], remote_id: int, fields: list[str]) -> None:
    """Emit user updated event."""
    emit_event(body, EVENT_REASON_USER_UPDATED, f"Remote user {remote_id} updated ({', '.join(fields)})")


def emit_user_deleted(body: dict[str, Any], remote_id: int) -> None:
    """Emit user deleted event."""
    emit_event(body, EVENT_REASON_USER_DELETED, f"Remote user {remote_id} deleted")


def emit_user_unavailable(body: dict[str, Any], message: str) -> None:
    """Emit user unavailable event."""
    emit_event(body, EVENT_REASON_USER_UNAVAILABLE, message, type_="Warning")
