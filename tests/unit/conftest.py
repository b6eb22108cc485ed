"""Shared fixtures for unit tests."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import patch

import pytest

from reqres_operator.builders.user import create_user_record_from_object
from reqres_operator.constants import API_GROUP_VERSION, KIND_USER
from reqres_operator.exceptions import ConflictError, RecordNotFoundError, RemoteNotFoundError
from reqres_operator.models import RecordKey, RemoteUser, UserRecord, UserSpec, UserStatus


class FakeRecordStore:
    """In-memory RecordStore with resourceVersion checks like the API server."""

    def __init__(self) -> None:
        self.objects: dict[RecordKey, dict[str, Any]] = {}
        self.status_writes: list[dict[str, Any]] = []
        self.finalizer_writes: list[list[str]] = []
        self.get_error: Exception | None = None
        self.status_error: Exception | None = None
        self.finalizer_error: Exception | None = None

    def add(
        self,
        name: str = "alice",
        namespace: str = "default",
        spec: dict[str, Any] | None = None,
        status: dict[str, Any] | None = None,
        finalizers: list[str] | None = None,
        deleting: bool = False,
    ) -> RecordKey:
        key = RecordKey(namespace=namespace, name=name)
        metadata: dict[str, Any] = {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{name}",
            "resourceVersion": "1",
            "finalizers": list(finalizers or []),
        }
        if deleting:
            metadata["deletionTimestamp"] = "2026-01-01T00:00:00Z"
        self.objects[key] = {
            "apiVersion": API_GROUP_VERSION,
            "kind": KIND_USER,
            "metadata": metadata,
            "spec": spec if spec is not None else {"email": "a@b.com", "firstName": "A"},
            "status": status or {},
        }
        return key

    def status_of(self, key: RecordKey) -> dict[str, Any]:
        return self.objects[key]["status"]

    def finalizers_of(self, key: RecordKey) -> list[str]:
        return self.objects[key]["metadata"]["finalizers"]

    def touch(self, key: RecordKey) -> None:
        """Simulate a concurrent edit by another writer (e.g. a label change)."""
        self._bump(self.objects[key])

    def _checked(self, record: UserRecord) -> dict[str, Any]:
        obj = self.objects.get(record.key)
        if obj is None:
            raise RecordNotFoundError(f"User {record.key} not found")
        if obj["metadata"]["resourceVersion"] != record.resource_version:
            raise ConflictError(f"User {record.key} was modified concurrently")
        return obj

    @staticmethod
    def _bump(obj: dict[str, Any]) -> None:
        obj["metadata"]["resourceVersion"] = str(int(obj["metadata"]["resourceVersion"]) + 1)

    def get(self, key: RecordKey) -> UserRecord:
        if self.get_error is not None:
            raise self.get_error
        if key not in self.objects:
            raise RecordNotFoundError(f"User {key} not found")
        return create_user_record_from_object(copy.deepcopy(self.objects[key]))

    def update_status(self, record: UserRecord, status: UserStatus) -> UserRecord:
        if self.status_error is not None:
            raise self.status_error
        obj = self._checked(record)
        obj["status"] = copy.deepcopy(status.to_dict())
        self._bump(obj)
        self.status_writes.append(copy.deepcopy(obj["status"]))
        return create_user_record_from_object(copy.deepcopy(obj))

    def update_finalizers(self, record: UserRecord, finalizers: list[str]) -> UserRecord:
        if self.finalizer_error is not None:
            raise self.finalizer_error
        obj = self._checked(record)
        obj["metadata"]["finalizers"] = list(finalizers)
        self._bump(obj)
        self.finalizer_writes.append(list(finalizers))
        result = create_user_record_from_object(copy.deepcopy(obj))
        # the API server removes a deleted object once nothing blocks it
        if "deletionTimestamp" in obj["metadata"] and not finalizers:
            del self.objects[record.key]
        return result


class FakeUsersAPI:
    """In-memory users API recording every call."""

    def __init__(self, next_id: int = 42) -> None:
        self.users: dict[int, RemoteUser] = {}
        self.next_id = next_id
        self.calls: list[str] = []
        self.errors: dict[str, Exception] = {}

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.errors:
            raise self.errors[operation]

    def create_user(self, user: UserSpec) -> RemoteUser:
        self._enter("create")
        user_id = self.next_id
        self.next_id += 1
        self.users[user_id] = RemoteUser(
            id=user_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar=f"https://reqres.in/img/faces/{user_id}-image.jpg",
        )
        return RemoteUser(id=user_id)

    def get_user(self, user_id: int) -> RemoteUser:
        self._enter("get")
        if user_id not in self.users:
            raise RemoteNotFoundError("get_user", 404, 200)
        return copy.deepcopy(self.users[user_id])

    def update_user(self, user_id: int, user: UserSpec) -> None:
        self._enter("update")
        existing = self.users.get(user_id, RemoteUser(id=user_id))
        self.users[user_id] = RemoteUser(
            id=user_id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            avatar=existing.avatar,
        )

    def delete_user(self, user_id: int) -> bool:
        self._enter("delete")
        self.users.pop(user_id, None)
        return True

    @property
    def writes(self) -> list[str]:
        return [call for call in self.calls if call != "get"]


@pytest.fixture(autouse=True)
def mock_kopf_event():
    """Kubernetes events need a running operator; capture them instead."""
    with patch("reqres_operator.utils.events.kopf.event") as mock_event:
        yield mock_event


@pytest.fixture(autouse=True)
def no_rate_limit():
    """Disable client-side rate limiting so tests do not sleep."""
    with patch("reqres_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1_000_000.0), \
            patch("reqres_operator.utils.rate_limit._REQRES_RATE_LIMIT_PER_SECOND", 1_000_000.0):
        yield


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def users_api() -> FakeUsersAPI:
    return FakeUsersAPI()
