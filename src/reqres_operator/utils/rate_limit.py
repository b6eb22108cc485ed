"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))
_REQRES_RATE_LIMIT_PER_SECOND = float(os.getenv("REQRES_RATE_LIMIT_PER_SECOND", "5.0"))

# Time of the last reserved call slot per API
_k8s_last_call_time: float = 0.0
_reqres_last_call_time: float = 0.0
_k8s_lock = threading.Lock()
_reqres_lock = threading.Lock()


def _reserve_slot(last_call_time: float, rate_per_second: float) -> tuple[float, float]:
    """Pick the earliest time a call may start after the previous slot.

    Returns:
        (slot time, seconds to wait until it)
    """
    now = time.time()
    slot = max(now, last_call_time + 1.0 / rate_per_second)
    return slot, slot - now


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        with _k8s_lock:
            _k8s_last_call_time, wait = _reserve_slot(_k8s_last_call_time, _K8S_RATE_LIMIT_PER_SECOND)
        # sleep outside the lock; later callers reserve the following slots
        if wait > 0:
            time.sleep(wait)
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def rate_limit_reqres(func: _F) -> _F:
    """Decorator to rate limit calls to the remote users API."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _reqres_last_call_time
        with _reqres_lock:
            _reqres_last_call_time, wait = _reserve_slot(_reqres_last_call_time, _REQRES_RATE_LIMIT_PER_SECOND)
        if wait > 0:
            time.sleep(wait)
        return func(*args, **kwargs)

    return wrapper  # type: ignore
