"""Per-pass logging context.

Every reconciliation pass runs inside ``pass_context``. Structured log lines
written during the pass carry the pass's correlation id and the record it is
working on, so the lines of one pass can be picked out of interleaved output.
"""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator


@dataclass(frozen=True)
class PassContext:
    """Identity of the reconciliation pass in progress."""

    record: str
    correlation_id: str


_current_pass: contextvars.ContextVar[PassContext | None] = contextvars.ContextVar("current_pass", default=None)


def current_pass() -> PassContext | None:
    """Return the pass running in this context, if any."""
    return _current_pass.get()


@contextmanager
def pass_context(record: str, correlation_id: str | None = None) -> Iterator[PassContext]:
    """Mark the enclosed block as one pass over ``record``.

    A correlation id is generated when none is given. Nested passes shadow the
    outer one until they exit.
    """
    ctx = PassContext(record=record, correlation_id=correlation_id or uuid.uuid4().hex[:12])
    token = _current_pass.set(ctx)
    try:
        yield ctx
    finally:
        _current_pass.reset(token)


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Fields to merge into a structured log line for the current pass."""
    ctx: dict[str, Any] = {}
    active = current_pass()
    if active is not None:
        ctx["correlation_id"] = active.correlation_id
        ctx["record"] = active.record
    if additional:
        ctx.update(additional)
    return ctx
