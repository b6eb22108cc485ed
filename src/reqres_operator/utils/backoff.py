"""Requeue delay schedule for the driving loop."""

from __future__ import annotations


def compute_backoff(retry: int, base_delay: float, max_delay: float) -> float:
    """Exponential backoff: base, 2*base, 4*base, ... capped at max_delay.

    Args:
        retry: Number of retries already made for the current cause (0 for the first)
        base_delay: Delay for the first retry, in seconds
        max_delay: Upper bound, in seconds

    Returns:
        Delay in seconds, always finite and at least base_delay (unless max_delay is lower)
    """
    retry = max(retry, 0)
    # cap the exponent so huge retry counts cannot overflow
    delay = base_delay * (2 ** min(retry, 32))
    return min(delay, max_delay)
