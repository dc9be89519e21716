"""
Contents API client (GitHub-style repository contents endpoint).

Design:
- Implements the `ContentStore` port with a `requests.Session`.
- Reads return `ObjectNotFound` for 404 so callers can treat "does not exist
  yet" as a normal state; everything else non-2xx raises a `StoreError`.
- A 200 without an inline base64 body (files over 1 MB) raises `DecodeError`;
  only a 404 may ever be read as "empty".
- Conditional writes: a stale or missing `sha` comes back as 409/412 (or 422
  mentioning `sha`) and is raised as `ConflictError`.

Security:
- The bearer token lives only in the session headers. Do not log it.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from backend.storage.codec import DecodeError
from backend.storage.errors import ConflictError, StoreError, TransportError
from backend.storage.keys import encode_path
from backend.storage.ports import ObjectNotFound, ReadResult, StoredObject, WriteReceipt

_log = logging.getLogger("photodrop.storage")

API_VERSION = "2022-11-28"
CONFLICT_STATUSES = frozenset({409, 412})


class ContentsClient:
    """Minimal contents API client (sync, requests-based)."""

    def __init__(
        self,
        base_url: str,
        owner: str,
        repo: str,
        token: str,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.owner = owner
        self.repo = repo
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        })

    def object_url(self, path: str) -> str:
        return f"{self.base_url}/repos/{self.owner}/{self.repo}/contents/{encode_path(path)}"

    # --- Port methods -----------------------------------------------------

    def read_object(self, path: str, *, ref: str) -> ReadResult:
        url = self.object_url(path)
        resp = self._send("GET", url, operation="read", path=path, params={"ref": ref})
        if resp.status_code == 404:
            _log.debug("GET %s ref=%s not found", path, ref)
            return ObjectNotFound(path=path)
        body = self._json_or_raise("GET", url, resp, operation="read", path=path)
        if not isinstance(body, dict):
            raise TransportError(
                f"GET {url} failed: unexpected response shape",
                status=resp.status_code,
                payload=body,
                operation="read",
                path=path,
            )
        content = str(body.get("content") or "")
        encoding = str(body.get("encoding") or "base64").lower()
        size = body.get("size")
        # Large files come back with encoding "none" and no inline body.
        if encoding != "base64" or (not content.strip() and isinstance(size, int) and size > 0):
            _log.warning("GET %s returned no inline content (encoding=%s size=%s)", path, encoding, size)
            raise DecodeError(f"GET {url}: content not returned inline (encoding={encoding}, size={size})")
        return StoredObject(
            path=str(body.get("path") or path),
            content=content,
            sha=str(body.get("sha") or ""),
        )

    def write_object(
        self,
        path: str,
        *,
        branch: str,
        content: str,
        message: str,
        sha: Optional[str] = None,
    ) -> WriteReceipt:
        url = self.object_url(path)
        payload: dict[str, Any] = {"message": message, "content": content, "branch": branch}
        if sha:
            payload["sha"] = sha
        resp = self._send("PUT", url, operation="write", path=path, json=payload)
        body = self._json_or_raise("PUT", url, resp, operation="write", path=path)
        committed = body.get("content") if isinstance(body, dict) else None
        committed = committed if isinstance(committed, dict) else {}
        return WriteReceipt(path=str(committed.get("path") or path), sha=committed.get("sha"))

    # --- HTTP helpers -----------------------------------------------------

    def _send(self, method: str, url: str, *, operation: str, path: str, **kwargs: Any) -> requests.Response:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            _log.warning("%s %s failed: error=%s", method, path, type(exc).__name__)
            raise TransportError(
                f"{method} {url} failed: {exc}",
                operation=operation,
                path=path,
            ) from exc
        _log.debug("%s %s status=%s", method, path, resp.status_code)
        return resp

    def _json_or_raise(self, method: str, url: str, resp: requests.Response, *, operation: str, path: str) -> Any:
        payload = _safe_json(resp)
        if 200 <= resp.status_code < 300:
            return payload
        raise classify_failure(method, url, resp.status_code, getattr(resp, "reason", ""), payload, operation=operation, path=path)


def _safe_json(resp: requests.Response) -> Any:
    if not getattr(resp, "content", b""):
        return None
    try:
        return resp.json()
    except ValueError:
        return None


def classify_failure(
    method: str,
    url: str,
    status: int,
    reason: str,
    payload: Any,
    *,
    operation: str,
    path: str,
) -> StoreError:
    """Turn a non-2xx reply into a ConflictError or TransportError.

    The message prefers the structured error body (`message`, plus
    `documentation_url` in parentheses) and falls back to "<status> <reason>".
    """
    body = payload if isinstance(payload, dict) else {}
    api_message = str(body.get("message") or "").strip()
    message = api_message or f"{status} {reason or ''}".strip()
    doc = body.get("documentation_url")
    detail = f" ({doc})" if doc else ""
    text = f"{method} {url} failed: {message}{detail}"
    conflict = status in CONFLICT_STATUSES or (status == 422 and "sha" in api_message.lower())
    cls = ConflictError if conflict else TransportError
    _log.warning("%s %s failed: status=%s conflict=%s", method, path, status, conflict)
    return cls(text, status=status, payload=payload, operation=operation, path=path)


__all__ = ["ContentsClient", "classify_failure", "API_VERSION"]
