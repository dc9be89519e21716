"""
Manifest synchronization for one event.

Intent:
    Read the event's manifest once, collect new photo entries in memory and
    write the document back with exactly one conditional write.

Behavior:
    - States: loading -> ready -> flushed.
    - A missing manifest is the normal first-upload case: start empty with no
      concurrency token, so the flush becomes a create.
    - A manifest that cannot be decoded raises `DecodeError`; it is never
      replaced with an empty one.
    - The flush presents the token captured at load time. If another uploader
      wrote in between, the store rejects it and `ConflictError` propagates
      unchanged. Nothing retries; re-running the batch picks up the current
      manifest.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from backend.photos.domain import AssetReference, CollectionRef, Manifest
from backend.storage.codec import DecodeError, decode_to_text, encode_text
from backend.storage.keys import manifest_key
from backend.storage.ports import ContentStore, ObjectNotFound, WriteReceipt

_log = logging.getLogger("photodrop.uploads")

LOADING = "loading"
READY = "ready"
FLUSHED = "flushed"


def parse_manifest(event_id: str, text: str) -> Manifest:
    """Parse a manifest body; empty or `null` documents yield an empty manifest."""
    if not text.strip():
        return Manifest.empty(event_id)
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"manifest is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
    if doc is None:
        return Manifest.empty(event_id)
    if not isinstance(doc, dict):
        raise DecodeError("manifest must be a JSON object")
    photos = doc.get("photos")
    if photos is None:
        photos = []
    if not isinstance(photos, list):
        raise DecodeError("manifest 'photos' must be a list")
    extra = {k: v for k, v in doc.items() if k not in ("eventId", "photos")}
    return Manifest(event_id=str(doc.get("eventId") or event_id), photos=list(photos), extra=extra)


def serialize_manifest(manifest: Manifest) -> str:
    return json.dumps(manifest.to_document(), indent=2, ensure_ascii=False) + "\n"


class ManifestSync:
    def __init__(self, store: ContentStore, collection: CollectionRef, *, photos_root: str | None = None) -> None:
        self._store = store
        self._collection = collection
        self.path = manifest_key(collection.event_id, root=photos_root)
        self.state = LOADING
        self.sha: Optional[str] = None
        self._manifest: Optional[Manifest] = None
        self._appended = 0

    @property
    def manifest(self) -> Manifest:
        if self._manifest is None:
            raise RuntimeError("manifest_not_loaded")
        return self._manifest

    @property
    def appended(self) -> int:
        return self._appended

    def load(self) -> Manifest:
        """Fetch the manifest or start an empty one when none exists."""
        if self.state != LOADING:
            raise RuntimeError(f"manifest_already_{self.state}")
        event_id = self._collection.event_id
        result = self._store.read_object(self.path, ref=self._collection.branch)
        if isinstance(result, ObjectNotFound):
            _log.info("No manifest at %s yet; starting empty", self.path)
            self._manifest = Manifest.empty(event_id)
            self.sha = None
        else:
            try:
                self._manifest = parse_manifest(event_id, decode_to_text(result.content))
            except DecodeError as exc:
                raise DecodeError(f"read {self.path} failed: {exc}") from exc
            self.sha = result.sha or None
            _log.info("Loaded manifest %s with %d entries", self.path, len(self._manifest.photos))
        self.state = READY
        return self._manifest

    def append(self, ref: AssetReference) -> None:
        if self.state != READY:
            raise RuntimeError(f"cannot_append_when_{self.state}")
        self.manifest.append(ref)
        self._appended += 1

    def flush(self, message: str | None = None) -> WriteReceipt:
        """Write the manifest back once, conditional on the loaded token."""
        if self.state != READY:
            raise RuntimeError(f"cannot_flush_when_{self.state}")
        body = serialize_manifest(self.manifest)
        receipt = self._store.write_object(
            self.path,
            branch=self._collection.branch,
            content=encode_text(body),
            message=message or f"Update photo manifest for {self._collection.event_id}",
            sha=self.sha,
        )
        self.state = FLUSHED
        self.sha = receipt.sha or self.sha
        _log.info("Manifest %s written (%d new entries)", receipt.path, self._appended)
        return receipt


__all__ = ["ManifestSync", "parse_manifest", "serialize_manifest", "LOADING", "READY", "FLUSHED"]
