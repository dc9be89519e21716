"""
Batch photo upload use case.

Intent:
    Drive one operator batch end to end: validate input, read the event's
    manifest, write each image to the content store, then update the manifest
    with a single conditional write.

Behavior:
    - Validation runs before any remote call; a `ValidationError` means
      nothing was written.
    - Files are processed strictly in input order, one remote call at a time.
      Non-images are skipped but still consume their position, so later
      names do not shift.
    - The first failed write aborts the batch. Photos already written stay in
      the store (they are simply unreferenced) and the manifest is not
      flushed. Nothing retries.
    - Every step emits a human-readable progress line to `on_progress`.

Permissions:
    The caller supplies the bearer credential per batch; this module never
    persists it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Collection, Optional, Sequence
from urllib.parse import quote

from backend.photos.domain import (
    AssetReference,
    CandidateFile,
    CollectionRef,
    ValidationError,
    parse_repo,
)
from backend.photos.manifest import ManifestSync
from backend.storage.codec import DecodeError, encode_binary
from backend.storage.config import (
    CONTENT_BRANCH_DEFAULT,
    get_content_api_base_url,
    get_content_api_timeout,
    get_photos_root,
    get_site_base_url,
)
from backend.storage.contents_client import ContentsClient
from backend.storage.errors import StoreError
from backend.storage.keys import photo_file_name, photo_key
from backend.storage.ports import ContentStore

_log = logging.getLogger("photodrop.uploads")

StoreFactory = Callable[[CollectionRef, str], ContentStore]
ProgressCallback = Callable[[str], None]
Clock = Callable[[], datetime]

# Errors that end a batch and are reported as its outcome.
BATCH_ERRORS = (ValidationError, StoreError, DecodeError)


def default_store_factory(collection: CollectionRef, token: str) -> ContentStore:
    return ContentsClient(
        get_content_api_base_url(),
        collection.owner,
        collection.repo,
        token,
        timeout=get_content_api_timeout(),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a trailing Z."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def event_view_url(event_id: str, base_url: str | None = None) -> str:
    link = f"event/?id={quote(event_id, safe='')}"
    base = (base_url or "").strip()
    return f"{base.rstrip('/')}/{link}" if base else link


@dataclass
class UploadBatchInput:
    repo: str
    event_id: str
    token: str
    files: Sequence[CandidateFile]
    branch: str = CONTENT_BRANCH_DEFAULT
    known_event_ids: Optional[Collection[str]] = None


@dataclass
class UploadResult:
    manifest_path: str
    view_url: str
    uploaded: list[AssetReference]
    skipped: list[str]
    log: list[str]


@dataclass
class UploadOutcome:
    """Terminal outcome of a batch: success, or the first error."""

    ok: bool
    log: list[str]
    manifest_path: Optional[str] = None
    view_url: Optional[str] = None
    error: Optional[Exception] = None
    uploaded: list[AssetReference] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error is not None else None


class _Transcript:
    def __init__(self, on_progress: Optional[ProgressCallback]) -> None:
        self.lines: list[str] = []
        self.uploaded: list[AssetReference] = []
        self.skipped: list[str] = []
        self._on_progress = on_progress

    def emit(self, line: str) -> None:
        self.lines.append(line)
        _log.debug("progress: %s", line)
        if self._on_progress is not None:
            self._on_progress(line)


class UploadBatchUseCase:
    def __init__(
        self,
        store_factory: StoreFactory = default_store_factory,
        *,
        photos_root: str | None = None,
        site_base_url: str | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._store_factory = store_factory
        self._photos_root = photos_root
        self._site_base_url = site_base_url
        self._clock = clock

    @property
    def photos_root(self) -> str:
        return self._photos_root or get_photos_root()

    @property
    def site_base_url(self) -> str:
        return self._site_base_url if self._site_base_url is not None else get_site_base_url()

    def validate(self, req: UploadBatchInput) -> CollectionRef:
        """Check the batch input; raise ValidationError on the first problem."""
        parts = parse_repo(req.repo)
        if not parts:
            raise ValidationError("repo_invalid", "Repo must be owner/repo")
        if not str(req.token or "").strip():
            raise ValidationError("token_missing", "Token required")
        event_id = str(req.event_id or "").strip()
        if not event_id:
            raise ValidationError("event_missing", "Choose an event")
        if req.known_event_ids is not None and event_id not in req.known_event_ids:
            raise ValidationError("event_unknown", f"Unknown event: {event_id}")
        if not req.files:
            raise ValidationError("files_missing", "Choose photos first")
        branch = str(req.branch or "").strip() or CONTENT_BRANCH_DEFAULT
        return CollectionRef(owner=parts[0], repo=parts[1], branch=branch, event_id=event_id)

    def execute(self, req: UploadBatchInput, on_progress: Optional[ProgressCallback] = None) -> UploadResult:
        """Run the batch and return its result; errors propagate."""
        return self._execute(req, _Transcript(on_progress))

    def run(self, req: UploadBatchInput, on_progress: Optional[ProgressCallback] = None) -> UploadOutcome:
        """Run the batch and report a single terminal outcome.

        Behavior:
            Batch errors (validation, store, decode) are captured in
            `UploadOutcome.error` after an `ERROR: ...` progress line; the
            transcript and any photos written before the failure are kept.
        """
        transcript = _Transcript(on_progress)
        try:
            result = self._execute(req, transcript)
        except BATCH_ERRORS as exc:
            _log.warning("Upload batch failed: %s", exc)
            transcript.emit(f"ERROR: {exc}")
            return UploadOutcome(
                ok=False,
                log=transcript.lines,
                error=exc,
                uploaded=transcript.uploaded,
                skipped=transcript.skipped,
            )
        return UploadOutcome(
            ok=True,
            log=result.log,
            manifest_path=result.manifest_path,
            view_url=result.view_url,
            uploaded=result.uploaded,
            skipped=result.skipped,
        )

    def _execute(self, req: UploadBatchInput, transcript: _Transcript) -> UploadResult:
        collection = self.validate(req)
        event_id = collection.event_id
        store = self._store_factory(collection, str(req.token).strip())

        transcript.emit(f"Repo: {collection.repo_slug} ({collection.branch})")
        transcript.emit(f"Event: {event_id}")
        transcript.emit(f"Files: {len(req.files)}")

        sync = ManifestSync(store, collection, photos_root=self.photos_root)
        sync.load()

        for index, item in enumerate(req.files):
            if not item.is_image:
                _log.warning("Skip %s – not an image (%s)", item.name, item.content_type or "unknown")
                transcript.skipped.append(item.name)
                transcript.emit(f"Skipping non-image: {item.name}")
                continue

            now = self._clock()
            file_name = photo_file_name(
                filename=item.name,
                content_type=item.content_type,
                position=index + 1,
                epoch_ms=int(now.timestamp() * 1000),
            )
            path = photo_key(event_id, file_name, root=self.photos_root)
            transcript.emit(f"Uploading {item.name} -> {path}")
            store.write_object(
                path,
                branch=collection.branch,
                content=encode_binary(item.data),
                message=f"Upload photo for {event_id}",
            )
            ref = AssetReference(
                src=path,
                uploaded_at=iso_timestamp(self._clock()),
                original_name=item.name,
            )
            sync.append(ref)
            transcript.uploaded.append(ref)

        receipt = sync.flush(f"Update photo manifest for {event_id}")
        view_url = event_view_url(event_id, self.site_base_url)
        transcript.emit(f"Manifest updated: {receipt.path or sync.path}")
        transcript.emit("Done.")
        transcript.emit(f"View: {view_url}")
        _log.info(
            "Uploaded %d photo(s) to %s (skipped %d)",
            len(transcript.uploaded),
            event_id,
            len(transcript.skipped),
        )
        return UploadResult(
            manifest_path=receipt.path or sync.path,
            view_url=view_url,
            uploaded=transcript.uploaded,
            skipped=transcript.skipped,
            log=transcript.lines,
        )


__all__ = [
    "UploadBatchInput",
    "UploadResult",
    "UploadOutcome",
    "UploadBatchUseCase",
    "default_store_factory",
    "event_view_url",
    "iso_timestamp",
    "BATCH_ERRORS",
]
