"""Builders for User records."""

from __future__ import annotations

from typing import Any

from ..models import RecordKey, UserRecord, UserSpec, UserStatus


def create_user_spec_from_spec(spec: dict[str, Any]) -> UserSpec:
    """Create a UserSpec from a User CRD spec.

    Args:
        spec: User CRD spec

    Returns:
        Declared user fields, absent optional fields as empty strings
    """
    return UserSpec(
        email=spec.get("email") or "",
        first_name=spec.get("firstName") or "",
        last_name=spec.get("lastName") or "",
        avatar=spec.get("avatar") or "",
    )


def create_user_record_from_object(obj: dict[str, Any]) -> UserRecord:
    """Create a UserRecord from a User custom object as returned by the API server.

    Args:
        obj: Full custom object (metadata, spec, status)

    Returns:
        UserRecord view of the object
    """
    meta = obj.get("metadata", {})
    return UserRecord(
        key=RecordKey(
            namespace=meta.get("namespace", "default"),
            name=meta.get("name", ""),
        ),
        spec=create_user_spec_from_spec(obj.get("spec") or {}),
        status=UserStatus.from_dict(obj.get("status")),
        finalizers=list(meta.get("finalizers") or []),
        deletion_requested=meta.get("deletionTimestamp") is not None,
        resource_version=meta.get("resourceVersion"),
        body=obj,
    )
