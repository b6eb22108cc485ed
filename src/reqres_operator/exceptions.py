"""Exception types raised by the remote client and the record store."""

from __future__ import annotations


class ReqresError(Exception):
    """Base class for failures talking to the remote users API.

    Every subclass is retryable from the reconciler's point of view.
    """


class TransportError(ReqresError):
    """The remote API could not be reached (connection failure or timeout)."""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class UnexpectedStatusError(ReqresError):
    """The remote API answered with a status other than the documented one."""

    def __init__(self, operation: str, status_code: int, expected: int):
        super().__init__(f"{operation} returned http status {status_code}, expected {expected}")
        self.operation = operation
        self.status_code = status_code
        self.expected = expected


class RemoteNotFoundError(UnexpectedStatusError):
    """A get did not return the expected ok status."""


class InvalidResponseError(ReqresError):
    """The remote API answered successfully but the body could not be decoded."""


class StoreError(Exception):
    """Base class for desired-state store failures."""


class RecordNotFoundError(StoreError):
    """The desired-state record no longer exists."""


class ConflictError(StoreError):
    """A write was rejected because the record changed underneath it."""
