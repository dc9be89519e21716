"""Event photo upload API routes."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from backend.photos.catalog import CatalogError, EventEntry, event_ids, load_event_catalog
from backend.photos.domain import CandidateFile, ValidationError
from backend.photos.upload import UploadBatchInput, UploadBatchUseCase, UploadOutcome
from backend.storage import config
from backend.storage.codec import DecodeError
from backend.storage.errors import ConflictError

logger = logging.getLogger("photodrop.web")

uploads_router = APIRouter()

_CHUNK_SIZE = 64 * 1024

# Module-level so tests can monkeypatch it with a fake store.
USE_CASE: UploadBatchUseCase = UploadBatchUseCase()


def _cache_headers() -> dict[str, str]:
    # Responses echo upload transcripts; never store them.
    return {"Cache-Control": "private, no-store", "Vary": "Origin"}


def _bearer_token(request: Request) -> str:
    raw = str(request.headers.get("authorization") or "").strip()
    scheme, _, value = raw.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return value.strip()


def _load_catalog() -> Optional[list[EventEntry]]:
    try:
        return load_event_catalog(config.get_events_catalog_source(), timeout=config.get_content_api_timeout())
    except CatalogError as exc:
        logger.warning("Event catalog unavailable: %s", exc)
        return None


def _too_large() -> JSONResponse:
    return JSONResponse(
        {"error": "payload_too_large", "detail": "size_exceeded"},
        status_code=413,
        headers=_cache_headers(),
    )


def _declared_length(request: Request) -> Optional[int]:
    raw = str(request.headers.get("content-length") or "").strip()
    return int(raw) if raw.isdigit() else None


async def _read_upload_with_limit(item: Any, remaining: int) -> Optional[bytes]:
    """Read one uploaded file in chunks; None once it exceeds `remaining`."""
    buffer = bytearray()
    while True:
        chunk = await item.read(_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > remaining:
            return None
    return bytes(buffer)


def _outcome_body(outcome: UploadOutcome) -> dict[str, Any]:
    return {
        "ok": outcome.ok,
        "manifest_path": outcome.manifest_path,
        "view_url": outcome.view_url,
        "uploaded": [ref.to_dict() for ref in outcome.uploaded],
        "skipped": list(outcome.skipped),
        "log": list(outcome.log),
    }


def _error_response(outcome: UploadOutcome) -> JSONResponse:
    exc = outcome.error
    if isinstance(exc, ValidationError):
        status, error, detail = 400, "bad_request", exc.code
    elif isinstance(exc, ConflictError):
        status, error, detail = 409, "conflict", "manifest_changed"
    elif isinstance(exc, DecodeError):
        status, error, detail = 502, "bad_gateway", "manifest_corrupt"
    else:
        status, error, detail = 502, "bad_gateway", "store_error"
    body = {"error": error, "detail": detail, "message": outcome.error_message, **_outcome_body(outcome)}
    return JSONResponse(body, status_code=status, headers=_cache_headers())


@uploads_router.get("/api/events")
async def list_events() -> JSONResponse:
    """Return the event catalog (ids and titles) for the upload form."""
    entries = _load_catalog()
    if entries is None:
        return JSONResponse(
            {"error": "service_unavailable", "detail": "catalog_unavailable"},
            status_code=503,
            headers=_cache_headers(),
        )
    return JSONResponse(
        {"events": [{"id": e.id, "title": e.title} for e in entries]},
        status_code=200,
        headers=_cache_headers(),
    )


@uploads_router.post("/api/events/{event_id}/photos")
async def upload_event_photos(event_id: str, request: Request) -> JSONResponse:
    """Upload a batch of photos for an event and update its manifest.

    Behavior:
        - Multipart form: `repo` (owner/repo, defaults to CONTENT_REPO),
          `branch` (defaults to CONTENT_BRANCH) and one or more `files`.
        - The bearer token from the Authorization header is forwarded to the
          content store for this request only; it is never stored.
        - When the catalog is readable, unknown event ids are rejected.
        - Rejects batches over UPLOAD_MAX_BYTES with 413 before any store call.
        - Maps the batch outcome to 200 / 400 / 409 / 502.
    """
    limit = config.get_upload_max_bytes()
    declared = _declared_length(request)
    if declared is not None and declared > limit:
        logger.warning("Upload for %s rejected: content-length=%s limit=%s", event_id, declared, limit)
        return _too_large()

    form = await request.form()
    files: list[CandidateFile] = []
    total = 0
    for item in form.getlist("files"):
        if not hasattr(item, "read"):
            continue
        data = await _read_upload_with_limit(item, limit - total)
        if data is None:
            logger.warning("Upload for %s rejected: files exceed limit=%s", event_id, limit)
            return _too_large()
        total += len(data)
        files.append(
            CandidateFile(
                name=str(getattr(item, "filename", "") or ""),
                content_type=str(getattr(item, "content_type", "") or ""),
                data=data,
            )
        )

    entries = _load_catalog()
    req = UploadBatchInput(
        repo=str(form.get("repo") or config.get_content_repo()),
        branch=str(form.get("branch") or config.get_content_branch()),
        event_id=event_id,
        token=_bearer_token(request),
        files=files,
        known_event_ids=event_ids(entries) if entries is not None else None,
    )
    outcome = USE_CASE.run(req)
    if not outcome.ok:
        return _error_response(outcome)
    return JSONResponse(_outcome_body(outcome), status_code=200, headers=_cache_headers())


__all__ = ["uploads_router"]
