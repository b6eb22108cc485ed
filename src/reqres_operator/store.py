"""Desired-state store for User records."""

from __future__ import annotations

import time
from typing import Any, Protocol

from kubernetes import client

from . import metrics
from .builders.user import create_user_record_from_object
from .constants import API_GROUP, API_VERSION, PLURAL_USERS
from .exceptions import ConflictError, RecordNotFoundError, StoreError
from .models import RecordKey, UserRecord, UserStatus
from .utils.rate_limit import rate_limit_k8s


class RecordStore(Protocol):
    """Contract the reconciler needs from the desired-state store."""

    def get(self, key: RecordKey) -> UserRecord:
        """Return the current record.

        Raises:
            RecordNotFoundError: If the record no longer exists
        """
        ...

    def update_status(self, record: UserRecord, status: UserStatus) -> UserRecord:
        """Replace the record's status, guarded by its resource version.

        Raises:
            ConflictError: If the record changed since it was read
        """
        ...

    def update_finalizers(self, record: UserRecord, finalizers: list[str]) -> UserRecord:
        """Replace the record's finalizers, guarded by its resource version.

        Raises:
            ConflictError: If the record changed since it was read
        """
        ...


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client.

    Returns:
        CustomObjectsApi instance
    """
    from kubernetes import config

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.CustomObjectsApi()


class KubernetesRecordStore:
    """RecordStore backed by User custom objects in the Kubernetes API."""

    def __init__(self, api: client.CustomObjectsApi) -> None:
        self.api = api

    def _call(self, operation: str, key: RecordKey, fn: Any, **kwargs: Any) -> dict[str, Any]:
        """Invoke a CustomObjectsApi method and map its errors onto store errors."""
        start_time = time.time()
        try:
            result = rate_limit_k8s(fn)(
                group=API_GROUP,
                version=API_VERSION,
                namespace=key.namespace,
                plural=PLURAL_USERS,
                name=key.name,
                **kwargs,
            )
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except client.exceptions.ApiException as e:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
            if e.status == 404:
                raise RecordNotFoundError(f"User {key} not found") from e
            if e.status == 409:
                raise ConflictError(f"User {key} was modified concurrently") from e
            raise StoreError(f"{operation} for User {key} failed: {e.status} {e.reason}") from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def get(self, key: RecordKey) -> UserRecord:
        obj = self._call("get_user", key, self.api.get_namespaced_custom_object)
        return create_user_record_from_object(obj)

    def update_status(self, record: UserRecord, status: UserStatus) -> UserRecord:
        body = {
            "metadata": {"resourceVersion": record.resource_version},
            "status": status.to_dict(),
        }
        obj = self._call(
            "patch_user_status",
            record.key,
            self.api.patch_namespaced_custom_object_status,
            body=body,
        )
        return create_user_record_from_object(obj)

    def update_finalizers(self, record: UserRecord, finalizers: list[str]) -> UserRecord:
        body = {
            "metadata": {
                "resourceVersion": record.resource_version,
                # merge patch: null clears the list
                "finalizers": finalizers or None,
            },
        }
        obj = self._call(
            "patch_user_finalizers",
            record.key,
            self.api.patch_namespaced_custom_object,
            body=body,
        )
        return create_user_record_from_object(obj)
