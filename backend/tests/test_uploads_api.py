"""
Photo upload API — multipart batch upload and event catalog.

The route's use case is swapped for one backed by the in-memory content
store; requests go through httpx's ASGI transport.
"""
from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport

from backend.photos.upload import UploadBatchUseCase
from backend.storage.codec import decode_to_text, encode_text
from backend.web import main
from backend.web.routes import uploads
from utils.fake_contents import InMemoryContentStore
from utils.image_fixtures import jpeg_bytes, png_bytes

pytestmark = pytest.mark.anyio("asyncio")

MANIFEST_PATH = "assets/photos/2024-10-05/manifest.json"


async def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://local")


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> InMemoryContentStore:
    fake = InMemoryContentStore()
    tokens: list[str] = []

    def factory(collection, token):
        tokens.append(token)
        return fake

    fake.tokens = tokens  # type: ignore[attr-defined]
    monkeypatch.setattr(uploads, "USE_CASE", UploadBatchUseCase(factory))
    return fake


def _multipart() -> list[tuple[str, tuple[str, bytes, str]]]:
    return [
        ("files", ("one.jpg", jpeg_bytes(), "image/jpeg")),
        ("files", ("notes.txt", b"hello", "text/plain")),
        ("files", ("three.png", png_bytes(), "image/png")),
    ]


@pytest.mark.anyio
async def test_upload_batch_success(store: InMemoryContentStore):
    async with (await _client()) as c:
        r = await c.post(
            "/api/events/2024-10-05/photos",
            data={"repo": "cookiesquad/site", "branch": "main"},
            files=_multipart(),
            headers={"Authorization": "Bearer tok-abc"},
        )

    assert r.status_code == 200, r.text
    assert r.headers["Cache-Control"] == "private, no-store"
    body = r.json()
    assert body["ok"] is True
    assert body["manifest_path"] == MANIFEST_PATH
    assert body["view_url"] == "event/?id=2024-10-05"
    assert body["skipped"] == ["notes.txt"]
    assert [u["originalName"] for u in body["uploaded"]] == ["one.jpg", "three.png"]
    assert "Done." in body["log"]
    assert store.tokens == ["tok-abc"]  # type: ignore[attr-defined]
    doc = json.loads(decode_to_text(store.objects[MANIFEST_PATH][0]))
    assert len(doc["photos"]) == 2


@pytest.mark.anyio
async def test_missing_bearer_token_is_bad_request(store: InMemoryContentStore):
    async with (await _client()) as c:
        r = await c.post("/api/events/2024-10-05/photos", data={"repo": "cookiesquad/site"}, files=_multipart())
    assert r.status_code == 400
    assert r.json()["detail"] == "token_missing"
    assert store.calls == []


@pytest.mark.anyio
async def test_no_files_is_bad_request(store: InMemoryContentStore):
    async with (await _client()) as c:
        r = await c.post(
            "/api/events/2024-10-05/photos",
            data={"repo": "cookiesquad/site"},
            headers={"Authorization": "Bearer t"},
        )
    assert r.status_code == 400
    assert r.json()["detail"] == "files_missing"
    assert store.calls == []


@pytest.mark.anyio
async def test_repo_defaults_from_env(store: InMemoryContentStore, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CONTENT_REPO", "cookiesquad/site")
    async with (await _client()) as c:
        r = await c.post(
            "/api/events/2024-10-05/photos",
            files=_multipart(),
            headers={"Authorization": "Bearer t"},
        )
    assert r.status_code == 200, r.text
    assert r.json()["log"][0] == "Repo: cookiesquad/site (main)"


@pytest.mark.anyio
async def test_manifest_conflict_maps_to_409(store: InMemoryContentStore):
    store.seed(MANIFEST_PATH, encode_text('{"eventId": "2024-10-05", "photos": []}'))
    original_write = store.write_object

    def racing_write(path, **kwargs):
        if path == MANIFEST_PATH:
            store.replace_behind_back(MANIFEST_PATH, encode_text('{"eventId": "2024-10-05", "photos": []}'))
        return original_write(path, **kwargs)

    store.write_object = racing_write  # type: ignore[method-assign]

    async with (await _client()) as c:
        r = await c.post(
            "/api/events/2024-10-05/photos",
            data={"repo": "cookiesquad/site"},
            files=_multipart(),
            headers={"Authorization": "Bearer t"},
        )
    assert r.status_code == 409
    body = r.json()
    assert body["error"] == "conflict"
    assert body["ok"] is False
    assert body["log"][-1].startswith("ERROR: ")


@pytest.mark.anyio
async def test_store_failure_maps_to_502(store: InMemoryContentStore):
    store.fail_write_after = 0
    async with (await _client()) as c:
        r = await c.post(
            "/api/events/2024-10-05/photos",
            data={"repo": "cookiesquad/site"},
            files=_multipart(),
            headers={"Authorization": "Bearer t"},
        )
    assert r.status_code == 502
    assert r.json()["detail"] == "store_error"
    assert MANIFEST_PATH not in store.objects


@pytest.mark.anyio
async def test_unknown_event_rejected_when_catalog_present(
    store: InMemoryContentStore, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
):
    events = tmp_path / "events.json"
    events.write_text(json.dumps({"events": [{"id": "2024-11-02", "title": "Nov"}]}), encoding="utf-8")
    monkeypatch.setenv("EVENTS_CATALOG", str(events))
    async with (await _client()) as c:
        r = await c.post(
            "/api/events/2024-10-05/photos",
            data={"repo": "cookiesquad/site"},
            files=_multipart(),
            headers={"Authorization": "Bearer t"},
        )
    assert r.status_code == 400
    assert r.json()["detail"] == "event_unknown"


@pytest.mark.anyio
async def test_list_events(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    events = tmp_path / "events.json"
    events.write_text(
        json.dumps({"events": [{"id": "2024-10-05", "title": "October Show", "lineup": []}]}),
        encoding="utf-8",
    )
    monkeypatch.setenv("EVENTS_CATALOG", str(events))
    async with (await _client()) as c:
        r = await c.get("/api/events")
    assert r.status_code == 200
    assert r.json() == {"events": [{"id": "2024-10-05", "title": "October Show"}]}


@pytest.mark.anyio
async def test_list_events_unavailable():
    async with (await _client()) as c:
        r = await c.get("/api/events")
    assert r.status_code == 503
    assert r.json()["detail"] == "catalog_unavailable"


@pytest.mark.anyio
async def test_batch_over_byte_limit_is_rejected_before_store_calls(
    store: InMemoryContentStore, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.setenv("UPLOAD_MAX_BYTES", "100")
    async with (await _client()) as c:
        r = await c.post(
            "/api/events/2024-10-05/photos",
            data={"repo": "cookiesquad/site"},
            files=_multipart(),
            headers={"Authorization": "Bearer t"},
        )
    assert r.status_code == 413
    assert r.json()["detail"] == "size_exceeded"
    assert r.headers["Cache-Control"] == "private, no-store"
    assert store.calls == []


class _ChunkedUpload:
    def __init__(self, data: bytes) -> None:
        self._data = data

    async def read(self, size: int = -1) -> bytes:
        chunk, self._data = self._data[:size], self._data[size:]
        return chunk


@pytest.mark.anyio
async def test_file_read_stops_once_limit_is_exceeded():
    big = b"x" * (200 * 1024)
    assert await uploads._read_upload_with_limit(_ChunkedUpload(big), 100 * 1024) is None
    assert await uploads._read_upload_with_limit(_ChunkedUpload(big), 200 * 1024) == big
