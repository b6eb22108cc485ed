"""Main entry point for the Reqres Operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .constants import FINALIZER
from .handlers import user as user_handlers

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging()

    config = OperatorConfig.from_env()

    # Use AnnotationsProgressStorage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    # kopf blocks deletion with the same marker the reconciler manages
    settings.persistence.finalizer = FINALIZER

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = config.max_workers

    user_handlers.setup_reconciler(config)
    logger.info(f"Reconciling users against {config.reqres_root_url}")

    # Start metrics HTTP server with health check endpoints
    health.start_metrics_server(config.metrics_port)
    health.mark_ready()


@kopf.on.cleanup()
def cleanup(**_: Any) -> None:
    """Release resources on shutdown."""
    health.mark_not_ready()
    user_handlers.shutdown_reconciler()


def main() -> None:
    """Run the operator in the current process."""
    config = OperatorConfig.from_env()
    if config.watch_namespaces:
        kopf.run(namespaces=config.watch_namespaces, standalone=True)
    else:
        kopf.run(clusterwide=True, standalone=True)


if __name__ == "__main__":
    main()
