"""Tests for base handler functionality."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from reqres_operator.constants import FINALIZER
from reqres_operator.exceptions import ConflictError, StoreError
from reqres_operator.handlers.base import BaseHandler
from reqres_operator.models import ReconcileResult, RecordKey, UserStatus


@pytest.fixture
def handler(store) -> BaseHandler:
    return BaseHandler(kind="TestKind", store=store)


class TestBaseHandler:
    """Test cases for BaseHandler class."""

    def test_init(self, store):
        """Test handler initialization."""
        handler = BaseHandler(kind="TestKind", store=store)
        assert handler.kind == "TestKind"
        assert handler.store is store
        assert handler.logger is not None

    def test_ensure_finalizer_adds_when_missing(self, handler, store):
        """Test that finalizer is added when not present."""
        key = store.add(finalizers=["other-finalizer"])

        record = handler.ensure_finalizer(store.get(key))

        assert record.finalizers == ["other-finalizer", FINALIZER]
        assert store.finalizers_of(key) == ["other-finalizer", FINALIZER]

    def test_ensure_finalizer_no_duplicate(self, handler, store):
        """Test that an existing finalizer causes no write."""
        key = store.add(finalizers=[FINALIZER])

        handler.ensure_finalizer(store.get(key))

        assert store.finalizer_writes == []

    def test_ensure_finalizer_conflict_propagates(self, handler, store):
        """Test that a stale record cannot gain the finalizer."""
        key = store.add()
        record = store.get(key)
        store.objects[key]["metadata"]["resourceVersion"] = "2"

        with pytest.raises(ConflictError):
            handler.ensure_finalizer(record)

    def test_remove_finalizer(self, handler, store):
        """Test that finalizer is removed and others are kept."""
        key = store.add(finalizers=[FINALIZER, "other-finalizer"])

        handler.remove_finalizer(store.get(key))

        assert store.finalizers_of(key) == ["other-finalizer"]

    def test_remove_finalizer_no_write_when_absent(self, handler, store):
        """Test that removing absent finalizer doesn't write."""
        key = store.add(finalizers=["other-finalizer"])

        handler.remove_finalizer(store.get(key))

        assert store.finalizer_writes == []

    @patch("reqres_operator.handlers.base.emit_reconcile_started")
    @patch("reqres_operator.handlers.base.metrics")
    def test_reconcile_with_metrics_success(self, mock_metrics, mock_emit_started, handler):
        """Test successful reconciliation with metrics."""
        body = {"metadata": {"name": "test-resource", "namespace": "default"}}
        reconcile_fn = Mock(return_value=ReconcileResult.converged())

        result = handler.reconcile_with_metrics(RecordKey("default", "test-resource"), body, reconcile_fn)

        reconcile_fn.assert_called_once()
        assert result.outcome.value == "converged"
        mock_emit_started.assert_called_once_with(body)
        mock_metrics.reconcile_total.labels.assert_any_call(kind="TestKind", result="started")
        mock_metrics.reconcile_total.labels.assert_any_call(kind="TestKind", result="success")
        assert mock_metrics.reconcile_duration_seconds.labels.called

    @patch("reqres_operator.handlers.base.metrics")
    def test_reconcile_with_metrics_requeue(self, mock_metrics, handler):
        """Test that retry outcomes are counted as requeued."""
        handler.reconcile_with_metrics(
            RecordKey("default", "x"), {}, lambda: ReconcileResult.retry_after(1.0)
        )

        mock_metrics.reconcile_total.labels.assert_any_call(kind="TestKind", result="requeued")
        mock_metrics.error_total.labels.assert_not_called()

    @patch("reqres_operator.handlers.base.emit_reconcile_failed")
    @patch("reqres_operator.handlers.base.metrics")
    def test_reconcile_with_metrics_fatal(self, mock_metrics, mock_emit_failed, handler):
        """Test that fatal outcomes are counted as errors without raising."""
        body = {"metadata": {"name": "x"}}

        result = handler.reconcile_with_metrics(
            RecordKey("default", "x"), body, lambda: ReconcileResult.fatal(StoreError("boom"))
        )

        assert result.error is not None
        mock_metrics.error_total.labels.assert_called_with(kind="TestKind", error_type="StoreError")
        mock_metrics.reconcile_total.labels.assert_any_call(kind="TestKind", result="error")
        mock_emit_failed.assert_called_once()

    @patch("reqres_operator.handlers.base.emit_reconcile_failed")
    @patch("reqres_operator.handlers.base.emit_reconcile_started")
    @patch("reqres_operator.handlers.base.metrics")
    @patch("reqres_operator.handlers.base.sanitize_exception")
    def test_reconcile_with_metrics_failure(
        self, mock_sanitize, mock_metrics, mock_emit_started, mock_emit_failed, handler
    ):
        """Test failed reconciliation with metrics and error handling."""
        body = {"metadata": {"name": "test-resource", "namespace": "default"}}
        test_error = ValueError("Test error")
        mock_sanitize.return_value = "Sanitized error"

        def failing_fn():
            raise test_error

        with pytest.raises(ValueError):
            handler.reconcile_with_metrics(RecordKey("default", "test-resource"), body, failing_fn)

        mock_sanitize.assert_called_once_with(test_error)
        mock_emit_started.assert_called_once_with(body)
        mock_emit_failed.assert_called_once_with(body, "Reconciliation failed: Sanitized error")
        mock_metrics.error_total.labels.assert_called_with(kind="TestKind", error_type="ValueError")
        mock_metrics.reconcile_total.labels.assert_any_call(kind="TestKind", result="error")
        assert mock_metrics.reconcile_duration_seconds.labels.called

    @patch("reqres_operator.handlers.base.metrics")
    def test_persist_status_ready(self, mock_metrics, handler, store):
        """Test persisting a ready status."""
        key = store.add()

        assert handler.persist_status(store.get(key), UserStatus(remote_id=42), ready=True)

        assert store.status_of(key)["remoteId"] == 42
        mock_metrics.resource_status_total.labels.assert_called_with(kind="TestKind", status="ready")

    @patch("reqres_operator.handlers.base.metrics")
    def test_persist_status_not_ready(self, mock_metrics, handler, store):
        """Test persisting a not ready status."""
        key = store.add()

        assert handler.persist_status(store.get(key), UserStatus(), ready=False)

        mock_metrics.resource_status_total.labels.assert_called_with(kind="TestKind", status="not_ready")

    @pytest.mark.parametrize("error", [ConflictError("changed"), StoreError("500"), RuntimeError("boom")])
    @patch("reqres_operator.handlers.base.metrics")
    def test_persist_status_failure_is_swallowed(self, mock_metrics, error, handler, store):
        """Test that status write failures are logged and reported, not raised."""
        key = store.add()
        store.status_error = error

        assert not handler.persist_status(store.get(key), UserStatus(remote_id=1), ready=True)

        assert store.status_of(key) == {}
        mock_metrics.resource_status_total.labels.assert_not_called()
