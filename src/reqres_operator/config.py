"""Operator configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import httpx

from .constants import DEFAULT_REQRES_ROOT_URL


def _positive_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _positive_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _root_url(name: str, default: str) -> str:
    raw = (os.getenv(name) or default).rstrip("/")
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise ValueError(f"{name} is not a valid URL: {e}") from None
    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"{name} must be an absolute http(s) URL, got {raw!r}")
    return raw


@dataclass
class OperatorConfig:
    """Runtime settings for the operator.

    Built once at startup and passed explicitly to the components that need it.
    """

    reqres_root_url: str = DEFAULT_REQRES_ROOT_URL
    request_timeout_seconds: float = 10.0
    requeue_delay_seconds: float = 10.0
    max_requeue_delay_seconds: float = 300.0
    metrics_port: int = 8080
    max_workers: int = 4
    watch_namespaces: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> OperatorConfig:
        """Load from environment variables.

        Raises:
            ValueError: If a numeric setting is malformed or not positive, or the
                root URL is not an absolute http(s) URL
        """
        return cls(
            reqres_root_url=_root_url("REQRES_ROOT_URL", DEFAULT_REQRES_ROOT_URL),
            request_timeout_seconds=_positive_float("REQRES_TIMEOUT_SECONDS", "10"),
            requeue_delay_seconds=_positive_float("REQUEUE_DELAY_SECONDS", "10"),
            max_requeue_delay_seconds=_positive_float("MAX_REQUEUE_DELAY_SECONDS", "300"),
            metrics_port=_positive_int("METRICS_PORT", "8080"),
            max_workers=_positive_int("MAX_WORKERS", "4"),
            watch_namespaces=[ns.strip() for ns in os.getenv("WATCH_NAMESPACE", "").split(",") if ns.strip()],
        )
