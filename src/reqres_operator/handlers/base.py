"""Base handler class with common functionality for all CRD handlers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .. import metrics
from ..constants import CONTROLLER_NAME, FINALIZER
from ..exceptions import ConflictError
from ..logging import log_resource_event
from ..models import Outcome, ReconcileResult, RecordKey, UserRecord, UserStatus
from ..store import RecordStore
from ..utils.errors import sanitize_exception
from ..utils.events import emit_reconcile_failed, emit_reconcile_started


class BaseHandler:
    """Base class for all CRD handlers with common functionality."""

    def __init__(self, kind: str, store: RecordStore):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "User")
            store: Desired-state store holding the records
        """
        self.kind = kind
        self.store = store
        self.logger = logging.getLogger(__name__)

    def _get_resource_context(self, key: RecordKey, meta: dict[str, Any]) -> dict[str, Any]:
        """Extract common resource context from a key and its metadata."""
        return {
            "name": key.name,
            "namespace": key.namespace,
            "uid": meta.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        key: RecordKey,
        meta: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(key, meta)
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        record: UserRecord,
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message.

        Args:
            record: Record the message is about
            message: Log message
            event: Event type (default: "info")
            reason: Reason for the event (default: "Info")
            **kwargs: Additional fields to include in the log
        """
        self._log(logging.INFO, record.key, record.meta, message, event, reason, **kwargs)

    def log_warning(
        self,
        record: UserRecord,
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, record.key, record.meta, message, event, reason, **kwargs)

    def log_error(
        self,
        record: UserRecord,
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            record: Record the message is about
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()

        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(error).__name__

        self._log(logging.ERROR, record.key, record.meta, message, event, reason, **log_data)

    def ensure_finalizer(self, record: UserRecord) -> UserRecord:
        """Attach the finalizer if absent and persist it.

        Raises:
            ConflictError: If the record changed since it was read
        """
        if FINALIZER in record.finalizers:
            return record
        return self.store.update_finalizers(record, record.finalizers + [FINALIZER])

    def remove_finalizer(self, record: UserRecord) -> UserRecord:
        """Remove the finalizer if present and persist the remaining ones.

        Other finalizers keep their order; no ordering is assumed.

        Raises:
            ConflictError: If the record changed since it was read
        """
        if FINALIZER not in record.finalizers:
            return record
        remaining = [f for f in record.finalizers if f != FINALIZER]
        return self.store.update_finalizers(record, remaining)

    def persist_status(self, record: UserRecord, status: UserStatus, ready: bool) -> bool:
        """Write the computed status onto the record.

        Failures are logged, not raised. Callers decide whether a lost write
        must be redelivered.

        Returns:
            True if the status was written
        """
        try:
            self.store.update_status(record, status)
        except ConflictError as e:
            self.log_warning(record, "Status not persisted, record changed concurrently", reason="StatusConflict", error=str(e))
            return False
        except Exception as e:
            self.log_error(record, "Status not persisted", error=e, reason="StatusUpdateFailed")
            return False

        metrics.resource_status_total.labels(kind=self.kind, status="ready" if ready else "not_ready").inc()
        return True

    def reconcile_with_metrics(
        self,
        key: RecordKey,
        body: dict[str, Any],
        reconcile_fn: Callable[[], ReconcileResult],
    ) -> ReconcileResult:
        """Execute reconciliation with metrics and error handling.

        Args:
            key: Key of the record being reconciled
            body: Resource body as delivered by the driving loop, for events
            reconcile_fn: Function to execute for reconciliation
        """
        emit_reconcile_started(body)
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            result = reconcile_fn()
        except Exception as e:
            sanitized_error = sanitize_exception(e)
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            self.logger.error(f"Reconciliation of {self.kind} {key} failed: {sanitized_error}")
            emit_reconcile_failed(body, f"Reconciliation failed: {sanitized_error}")
            raise
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)

        if result.outcome is Outcome.CONVERGED:
            metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
        elif result.outcome is Outcome.RETRY:
            metrics.reconcile_total.labels(kind=self.kind, result="requeued").inc()
        else:
            error_type = type(result.error).__name__ if result.error else "Unknown"
            metrics.error_total.labels(kind=self.kind, error_type=error_type).inc()
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            emit_reconcile_failed(body, f"Reconciliation failed: {sanitize_exception(result.error or Exception(result.message))}")
        return result
