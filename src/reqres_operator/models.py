"""Data model shared by the remote client, the record store and the reconciler."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import REMOTE_ID_UNSET

# Fields compared for drift and pushed on create/update
MUTABLE_FIELDS = ("email", "first_name", "last_name")


@dataclass(frozen=True)
class RecordKey:
    """Identity of a desired-state record."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class UserSpec:
    """Declared state of a user."""

    email: str
    first_name: str
    last_name: str = ""
    avatar: str = ""

    def validation_error(self) -> str | None:
        """Return why a create cannot be attempted, or None if it can."""
        if not self.email:
            return "spec.email is required"
        if not self.first_name:
            return "spec.firstName is required"
        return None


@dataclass
class UserStatus:
    """Observed state attached to a User record."""

    remote_id: int = REMOTE_ID_UNSET
    conditions: list[dict[str, Any]] = field(default_factory=list)
    avatar: str = ""
    last_sync_time: str | None = None

    @property
    def exists_remotely(self) -> bool:
        return self.remote_id > REMOTE_ID_UNSET

    @classmethod
    def from_dict(cls, status: dict[str, Any] | None) -> UserStatus:
        status = status or {}
        try:
            remote_id = int(status.get("remoteId") or REMOTE_ID_UNSET)
        except (TypeError, ValueError):
            remote_id = REMOTE_ID_UNSET
        return cls(
            remote_id=remote_id,
            conditions=copy.deepcopy(status.get("conditions") or []),
            avatar=status.get("avatar") or "",
            last_sync_time=status.get("lastSyncTime"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "remoteId": self.remote_id,
            "conditions": self.conditions,
        }
        if self.avatar:
            data["avatar"] = self.avatar
        if self.last_sync_time:
            data["lastSyncTime"] = self.last_sync_time
        return data


@dataclass
class UserRecord:
    """A User record as read from the desired-state store."""

    key: RecordKey
    spec: UserSpec
    status: UserStatus
    finalizers: list[str] = field(default_factory=list)
    deletion_requested: bool = False
    resource_version: str | None = None
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def meta(self) -> dict[str, Any]:
        return self.body.get("metadata", {})


@dataclass
class RemoteUser:
    """A user as represented by the remote API."""

    id: int
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    avatar: str = ""


def drifted_fields(remote: RemoteUser, desired: UserSpec) -> list[str]:
    """Return the mutable fields whose remote value differs from the declared one.

    Missing values compare as empty strings. ``id`` and ``avatar`` are
    remote-derived and never take part in the comparison.
    """
    return [
        name
        for name in MUTABLE_FIELDS
        if (getattr(remote, name) or "") != (getattr(desired, name) or "")
    ]


class Outcome(str, Enum):
    """Result of one reconciliation pass."""

    CONVERGED = "converged"
    RETRY = "retry"
    FATAL = "fatal"


@dataclass
class ReconcileResult:
    """What the driving loop should do after a pass."""

    outcome: Outcome
    delay: float | None = None
    error: Exception | None = None
    message: str = ""

    @classmethod
    def converged(cls, message: str = "") -> ReconcileResult:
        return cls(Outcome.CONVERGED, message=message)

    @classmethod
    def retry_after(cls, delay: float, message: str = "") -> ReconcileResult:
        return cls(Outcome.RETRY, delay=delay, message=message)

    @classmethod
    def fatal(cls, error: Exception) -> ReconcileResult:
        return cls(Outcome.FATAL, error=error, message=str(error))

    @property
    def requeue(self) -> bool:
        return self.outcome is Outcome.RETRY
