"""
Storage ports used by the photo upload engine.

Keep these small and framework-agnostic so tests can supply simple fakes.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Union


@dataclass(frozen=True)
class StoredObject:
    """An object as read from the store.

    `content` stays in transport (base64) form; `sha` is the concurrency token
    a later conditional write must present.
    """

    path: str
    content: str
    sha: str


@dataclass(frozen=True)
class ObjectNotFound:
    """The store has no object at `path` on the requested ref."""

    path: str


@dataclass(frozen=True)
class WriteReceipt:
    path: str
    sha: Optional[str] = None


ReadResult = Union[StoredObject, ObjectNotFound]


class ContentStore(Protocol):
    """Path-addressed, versioned object store with conditional writes.

    Intent:
        Let the manifest synchronizer and the batch orchestrator write photos
        and manifests without depending on a specific HTTP API.

    Behavior:
        - `read_object` returns `ObjectNotFound` for absent objects instead of
          raising; every other failure raises a `StoreError`.
        - `write_object` without `sha` creates; with `sha` it updates only if
          the token is still current, else raises `ConflictError`.
    """

    def read_object(self, path: str, *, ref: str) -> ReadResult: ...

    def write_object(
        self,
        path: str,
        *,
        branch: str,
        content: str,
        message: str,
        sha: Optional[str] = None,
    ) -> WriteReceipt: ...


__all__ = ["StoredObject", "ObjectNotFound", "WriteReceipt", "ReadResult", "ContentStore"]
