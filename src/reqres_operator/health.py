"""Health check endpoints for the operator."""

import threading
from typing import Any

from prometheus_client import make_wsgi_app
from werkzeug.serving import make_server
from werkzeug.wrappers import Response

# Set once the reconciler has been built at startup
_ready = threading.Event()


def mark_ready() -> None:
    """Report the operator as ready to reconcile."""
    _ready.set()


def mark_not_ready() -> None:
    """Report the operator as not ready (startup or shutdown)."""
    _ready.clear()


def is_ready() -> bool:
    return _ready.is_set()


def _health_response(path: str) -> Response | None:
    """Return the response for a health path, or None for other paths."""
    if path == "/healthz":
        return Response('{"status":"ok"}', mimetype="application/json", status=200)
    if path == "/readyz":
        if is_ready():
            return Response('{"status":"ready"}', mimetype="application/json", status=200)
        return Response('{"status":"not ready"}', mimetype="application/json", status=503)
    return None


def create_combined_wsgi_app() -> Any:
    """Create a WSGI app that combines metrics and health check endpoints.

    Returns:
        Combined WSGI application
    """
    metrics_app = make_wsgi_app()

    def combined_app(environ: dict[str, Any], start_response: Any) -> list[bytes]:
        """WSGI app that routes /healthz and /readyz, delegates /metrics to prometheus."""
        response = _health_response(environ.get("PATH_INFO", ""))
        if response is not None:
            return response(environ, start_response)
        # Delegate all other paths (including /metrics) to prometheus app
        return metrics_app(environ, start_response)

    return combined_app


def start_metrics_server(port: int) -> Any:
    """Serve metrics and health endpoints from a background thread.

    Args:
        port: Port to listen on

    Returns:
        The running werkzeug server
    """
    server = make_server("", port, create_combined_wsgi_app(), threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server
