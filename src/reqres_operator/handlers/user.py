"""Handler for User CRD."""

from __future__ import annotations

import copy
import os
from datetime import datetime, timezone
from typing import Any

import kopf

from .. import metrics
from ..config import OperatorConfig
from ..constants import (
    API_GROUP_VERSION,
    FINALIZER,
    KIND_USER,
    REASON_CREATE_FAILED,
    REASON_CREATED,
    REASON_INVALID_SPEC,
    REASON_SYNCED,
    REASON_UPDATED,
)
from ..exceptions import ReqresError, RecordNotFoundError, StoreError, UnexpectedStatusError
from ..models import Outcome, ReconcileResult, RecordKey, UserRecord, UserStatus, drifted_fields
from ..services.reqres import ReqresClient, UsersAPI
from ..store import KubernetesRecordStore, RecordStore, get_k8s_client
from ..utils.backoff import compute_backoff
from ..utils.conditions import set_available_condition, set_unavailable_condition
from ..utils.context import pass_context
from ..utils.errors import sanitize_exception
from ..utils.events import (
    emit_user_created,
    emit_user_deleted,
    emit_user_unavailable,
    emit_user_updated,
    emit_validate_failed,
)
from .base import BaseHandler


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserReconciler(BaseHandler):
    """Drives remote users toward the state declared in User records.

    A pass reads the record, infers its state from the deletion flag and
    ``status.remoteId``, performs at most one remote write and persists the
    resulting status. Nothing is kept between passes.
    """

    def __init__(self, store: RecordStore, client: UsersAPI, requeue_delay: float = 10.0):
        """Initialize user reconciler.

        Args:
            store: Desired-state store holding User records
            client: Remote users API client
            requeue_delay: Delay suggested to the driving loop when a pass must be retried
        """
        super().__init__(KIND_USER, store)
        self.client = client
        self.requeue_delay = requeue_delay

    def reconcile(self, key: RecordKey, body: dict[str, Any] | None = None) -> ReconcileResult:
        """Run one reconciliation pass for the record identified by key."""
        with pass_context(str(key)):
            return self.reconcile_with_metrics(key, body or {}, lambda: self._reconcile(key))

    def _requeue(self, message: str) -> ReconcileResult:
        return ReconcileResult.retry_after(self.requeue_delay, message)

    def _reconcile(self, key: RecordKey) -> ReconcileResult:
        try:
            record = self.store.get(key)
        except RecordNotFoundError:
            self.logger.info(f"User {key} no longer exists, nothing to reconcile")
            return ReconcileResult.converged("record deleted")
        except Exception as e:
            self.logger.error(f"Failed to read User {key}: {sanitize_exception(e)}")
            return ReconcileResult.fatal(e)

        if record.deletion_requested:
            return self._finalize(record)
        if not record.status.exists_remotely:
            return self._create(record)
        return self._sync(record)

    def _finalize(self, record: UserRecord) -> ReconcileResult:
        """Delete the remote user, then release the finalizer."""
        if FINALIZER not in record.finalizers:
            return ReconcileResult.converged("finalizer already released")

        remote_id = record.status.remote_id
        self.log_info(record, f"User {record.key} is being deleted", event="deletion", reason="Deletion", remote_id=remote_id)

        if record.status.exists_remotely:
            try:
                self.client.delete_user(remote_id)
            except UnexpectedStatusError as e:
                if e.status_code != 404:
                    self.log_error(record, f"Failed to delete remote user {remote_id}", error=e, reason="DeleteFailed")
                    return self._requeue(f"delete of remote user {remote_id} failed: {sanitize_exception(e)}")
                self.log_info(record, f"Remote user {remote_id} already gone", reason="AlreadyDeleted")
            except ReqresError as e:
                self.log_error(record, f"Failed to delete remote user {remote_id}", error=e, reason="DeleteFailed")
                return self._requeue(f"delete of remote user {remote_id} failed: {sanitize_exception(e)}")
            emit_user_deleted(record.body, remote_id)
        else:
            self.log_info(record, "No remote user was ever created", reason="NothingToDelete")

        try:
            self.remove_finalizer(record)
        except StoreError as e:
            self.log_warning(record, "Could not release finalizer", reason="FinalizerConflict", error=str(e))
            return self._requeue(f"finalizer not released: {e}")

        self.log_info(record, "Finalizer released", event="deletion", reason="Finalized")
        return ReconcileResult.converged("remote user deleted")

    def _create(self, record: UserRecord) -> ReconcileResult:
        """Create the remote user and record its id."""
        status = copy.deepcopy(record.status)

        validation_error = record.spec.validation_error()
        if validation_error:
            self.log_error(record, validation_error, reason="ValidationFailed")
            emit_validate_failed(record.body, validation_error)
            set_available_condition(status.conditions, False, REASON_INVALID_SPEC, validation_error)
            if not self.persist_status(record, status, ready=False):
                return self._requeue("status not persisted")
            # nothing to retry until the record itself changes
            return ReconcileResult.converged(validation_error)

        # The finalizer goes on before the remote user exists, so no remoteId
        # is ever recorded on a record that could be deleted without cleanup.
        try:
            record = self.ensure_finalizer(record)
        except StoreError as e:
            self.log_warning(record, "Could not attach finalizer", reason="FinalizerConflict", error=str(e))
            return self._requeue(f"finalizer not attached: {e}")

        try:
            remote = self.client.create_user(record.spec)
        except ReqresError as e:
            message = f"failed to create user: {sanitize_exception(e)}"
            self.log_error(record, "Failed to create remote user", error=e, reason="CreateFailed")
            set_available_condition(status.conditions, False, REASON_CREATE_FAILED, message)
            self.persist_status(record, status, ready=False)
            return self._requeue(message)

        emit_user_created(record.body, remote.id)
        self.log_info(record, f"Created remote user {remote.id}", event="create", reason="Created", remote_id=remote.id)
        if not self._record_remote_id(record, remote.id):
            self.log_error(
                record,
                f"Remote user {remote.id} created but its id was not recorded",
                event="create",
                reason="RemoteIdNotRecorded",
                remote_id=remote.id,
            )
            return self._requeue(f"remote user {remote.id} created but its id was not recorded")
        return ReconcileResult.converged("created")

    def _record_remote_id(self, record: UserRecord, remote_id: int) -> bool:
        """Persist a freshly assigned remote id.

        The id is the only pointer to the remote user, so a rejected write is
        retried once against a re-read of the record before giving up.
        """

        def with_remote_id(current: UserStatus) -> UserStatus:
            status = copy.deepcopy(current)
            status.remote_id = remote_id
            status.last_sync_time = _now()
            set_available_condition(status.conditions, True, REASON_CREATED, "user successfully created")
            return status

        if self.persist_status(record, with_remote_id(record.status), ready=True):
            return True

        try:
            fresh = self.store.get(record.key)
        except StoreError as e:
            self.log_warning(record, "Could not re-read record after status conflict", reason="StatusConflict", error=str(e))
            return False
        return self.persist_status(fresh, with_remote_id(fresh.status), ready=True)

    def _sync(self, record: UserRecord) -> ReconcileResult:
        """Compare the remote user with the declared fields and correct drift."""
        remote_id = record.status.remote_id
        status = copy.deepcopy(record.status)

        try:
            record = self.ensure_finalizer(record)
        except StoreError as e:
            self.log_warning(record, "Could not attach finalizer", reason="FinalizerConflict", error=str(e))
            return self._requeue(f"finalizer not attached: {e}")

        try:
            remote = self.client.get_user(remote_id)
        except ReqresError as e:
            message = f"could not find user {remote_id} in backend: {sanitize_exception(e)}"
            self.log_warning(record, message, reason="Unavailable", remote_id=remote_id)
            # remoteId stays: an outage is indistinguishable from a real loss
            set_unavailable_condition(status.conditions, message)
            self.persist_status(record, status, ready=False)
            emit_user_unavailable(record.body, message)
            return self._requeue(message)

        status.avatar = remote.avatar
        drift = drifted_fields(remote, record.spec)
        if not drift:
            status.last_sync_time = _now()
            set_available_condition(status.conditions, True, REASON_SYNCED, "user successfully synced")
            if not self.persist_status(record, status, ready=True):
                return self._requeue("status not persisted")
            return ReconcileResult.converged("synced")

        for field_name in drift:
            metrics.drift_detected_total.labels(kind=self.kind, field=field_name).inc()
        self.log_info(record, f"Remote user {remote_id} drifted", event="drift", reason="DriftDetected", fields=drift)

        try:
            self.client.update_user(remote_id, record.spec)
        except ReqresError as e:
            self.log_error(record, f"Failed to update remote user {remote_id}", error=e, reason="UpdateFailed")
            self.persist_status(record, status, ready=False)
            return self._requeue(f"update of remote user {remote_id} failed: {sanitize_exception(e)}")

        status.last_sync_time = _now()
        set_available_condition(status.conditions, True, REASON_UPDATED, "user successfully updated")
        emit_user_updated(record.body, remote_id, drift)
        if not self.persist_status(record, status, ready=True):
            return self._requeue("status not persisted")
        return ReconcileResult.converged("updated")


# Global reconciler instance, built at operator startup
_reconciler: UserReconciler | None = None
_config: OperatorConfig | None = None


def setup_reconciler(config: OperatorConfig) -> UserReconciler:
    """Build the reconciler from configuration and make it the active one."""
    global _reconciler, _config
    store = KubernetesRecordStore(get_k8s_client())
    client = ReqresClient(config.reqres_root_url, timeout=config.request_timeout_seconds)
    _config = config
    _reconciler = UserReconciler(store, client, requeue_delay=config.requeue_delay_seconds)
    return _reconciler


def shutdown_reconciler() -> None:
    """Release the remote client of the active reconciler."""
    global _reconciler
    if _reconciler is not None and isinstance(_reconciler.client, ReqresClient):
        _reconciler.client.close()
    _reconciler = None


def get_reconciler() -> UserReconciler:
    if _reconciler is None:
        return setup_reconciler(OperatorConfig.from_env())
    return _reconciler


def drive(
    reconciler: UserReconciler,
    key: RecordKey,
    body: dict[str, Any],
    retry: int,
    max_delay: float,
) -> None:
    """Run a pass and translate its outcome into kopf's retry mechanism.

    Raises:
        kopf.TemporaryError: When the pass asks to be retried
        Exception: The underlying error when the pass is fatal
    """
    result = reconciler.reconcile(key, body)
    if result.outcome is Outcome.RETRY:
        base_delay = result.delay if result.delay is not None else reconciler.requeue_delay
        delay = compute_backoff(retry, base_delay, max_delay)
        raise kopf.TemporaryError(result.message or "requeue requested", delay=delay)
    if result.outcome is Outcome.FATAL:
        raise result.error or RuntimeError(result.message)


def _key_from_meta(meta: dict[str, Any]) -> RecordKey:
    return RecordKey(namespace=meta.get("namespace", "default"), name=meta.get("name", ""))


def _max_delay() -> float:
    return _config.max_requeue_delay_seconds if _config is not None else OperatorConfig().max_requeue_delay_seconds


@kopf.on.create(API_GROUP_VERSION, KIND_USER)
@kopf.on.update(API_GROUP_VERSION, KIND_USER)
@kopf.on.resume(API_GROUP_VERSION, KIND_USER)
@kopf.timer(API_GROUP_VERSION, KIND_USER, interval=float(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300")))
def handle_user(
    body: kopf.Body,
    meta: kopf.Meta,
    retry: int = 0,
    **kwargs: Any,
) -> None:
    """Handle User resource reconciliation."""
    drive(get_reconciler(), _key_from_meta(meta), dict(body), retry, _max_delay())


@kopf.on.delete(API_GROUP_VERSION, KIND_USER)
def handle_user_delete(
    body: kopf.Body,
    meta: kopf.Meta,
    retry: int = 0,
    **kwargs: Any,
) -> None:
    """Handle User resource deletion."""
    drive(get_reconciler(), _key_from_meta(meta), dict(body), retry, _max_delay())
