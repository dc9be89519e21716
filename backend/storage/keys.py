"""
Helpers to generate object paths for event photos in the content store.

Why:
    Keep path shapes consistent between the uploader and the event pages, and
    never build object names from the (possibly unsafe or colliding) original
    filename.

Conventions:
    - Photos:    {root}/{event_id}/{epoch_ms}_{position}_{rand}.{ext}
    - Manifest:  {root}/{event_id}/manifest.json

Encoding:
    Paths are sequences of segments; each segment is percent-encoded on its own
    so event ids and filenames may contain any character except "/".
"""
from __future__ import annotations

import re
import time
import uuid
from urllib.parse import quote

PHOTOS_ROOT_DEFAULT = "assets/photos"
MANIFEST_NAME = "manifest.json"

_EXT_RE = re.compile(r"\.([A-Za-z0-9]{1,8})$")
_MIME_EXT = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}
_FALLBACK_EXT = "bin"
# encodeURIComponent leaves these unescaped
_SEGMENT_SAFE = "-_.!~*'()"


def ext_for(filename: str | None, content_type: str | None) -> str:
    """Pick a lowercase extension from the filename, then the MIME type."""
    m = _EXT_RE.search(str(filename or ""))
    if m:
        return m.group(1).lower()
    return _MIME_EXT.get(str(content_type or ""), _FALLBACK_EXT)


def photo_file_name(
    *,
    filename: str | None,
    content_type: str | None,
    position: int,
    epoch_ms: int | None = None,
    rand_hex: str | None = None,
) -> str:
    """Build a collision-resistant object name for one uploaded photo.

    `position` is the 1-based position of the file in its batch. Time and the
    random suffix default to the wall clock and uuid4.

    Returns: {epoch_ms}_{position}_{rand}.{ext}
    """
    ts = int(time.time() * 1000) if epoch_ms is None else int(epoch_ms)
    rand = (rand_hex or "").strip() or uuid.uuid4().hex[:6]
    return f"{ts}_{int(position)}_{rand}.{ext_for(filename, content_type)}"


def _root(root: str | None) -> str:
    return (root or PHOTOS_ROOT_DEFAULT).strip("/")


def photo_key(event_id: str, file_name: str, *, root: str | None = None) -> str:
    return f"{_root(root)}/{event_id}/{file_name}"


def manifest_key(event_id: str, *, root: str | None = None) -> str:
    """Deterministic manifest path for an event."""
    return f"{_root(root)}/{event_id}/{MANIFEST_NAME}"


def encode_path(path: str) -> str:
    return "/".join(quote(segment, safe=_SEGMENT_SAFE) for segment in str(path).split("/"))


__all__ = [
    "PHOTOS_ROOT_DEFAULT",
    "ext_for",
    "photo_file_name",
    "photo_key",
    "manifest_key",
    "encode_path",
]
