"""
Error taxonomy for the contents API adapter.

Callers branch on the class, not on raw status codes:
    - ConflictError: a conditional write lost against a concurrent change.
    - TransportError: any other non-2xx reply or a network failure.
"""
from __future__ import annotations

from typing import Any


class StoreError(Exception):
    """Base class for failed store operations.

    Attributes carry enough context to diagnose a failure without re-running
    it: the operation (`read`/`write`), the object path, the numeric status
    (None for network errors) and the decoded error body, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        payload: Any = None,
        operation: str | None = None,
        path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload
        self.operation = operation
        self.path = path


class TransportError(StoreError):
    pass


class ConflictError(StoreError):
    pass


__all__ = ["StoreError", "TransportError", "ConflictError"]
