"""
Photo upload domain types.

Why:
- Keep the manifest document shape in one place so the uploader and tests
  agree on field names (`src`, `alt`, `uploadedAt`, `originalName`).
- Parse the `owner/repo` collection reference once, before any remote call.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional

_REPO_RE = re.compile(r"^([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)$")


class ValidationError(ValueError):
    """Bad or missing batch input; raised before any side effect."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass(frozen=True)
class CollectionRef:
    owner: str
    repo: str
    branch: str
    event_id: str

    @property
    def repo_slug(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_repo(value: str | None) -> Optional[tuple[str, str]]:
    """Split "owner/repo" into its parts; None when the shape is invalid."""
    m = _REPO_RE.match(str(value or "").strip())
    if not m:
        return None
    return m.group(1), m.group(2)


@dataclass(frozen=True)
class CandidateFile:
    name: str
    content_type: str
    data: bytes

    @property
    def is_image(self) -> bool:
        return str(self.content_type or "").startswith("image/")


@dataclass(frozen=True)
class AssetReference:
    """One uploaded photo as recorded in a manifest."""

    src: str
    uploaded_at: str
    original_name: str
    alt: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "src": self.src,
            "alt": self.alt,
            "uploadedAt": self.uploaded_at,
            "originalName": self.original_name,
        }


@dataclass
class Manifest:
    """The per-event photo index.

    Existing entries stay as the dicts read from the store and unknown
    top-level keys are carried in `extra`, so a write never rewrites what
    another uploader put there.
    """

    event_id: str
    photos: list[dict[str, Any]] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls, event_id: str) -> "Manifest":
        return cls(event_id=event_id)

    def append(self, ref: AssetReference) -> None:
        self.photos.append(ref.to_dict())

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"eventId": self.event_id, "photos": list(self.photos)}
        for key, value in self.extra.items():
            doc.setdefault(key, value)
        return doc


__all__ = [
    "ValidationError",
    "CollectionRef",
    "parse_repo",
    "CandidateFile",
    "AssetReference",
    "Manifest",
]
