"""
Centralized configuration for the content store and the photo uploader.

Intent:
    Provide a single source of truth for defaults and their environment
    overrides so the CLI, the web API and tests agree on API base URL, branch,
    photo root and catalog location.

Behavior:
    - Each getter reads its env var at call time (tests can monkeypatch).
    - Empty or invalid values fall back to the documented default.

Permissions:
    Pure configuration; no external calls or privileges required.
"""
from __future__ import annotations

import os
from pathlib import Path

from backend.storage.keys import PHOTOS_ROOT_DEFAULT


CONTENT_API_BASE_URL_DEFAULT = "https://api.github.com"
CONTENT_BRANCH_DEFAULT = "main"
EVENTS_CATALOG_DEFAULT = "data/events.json"
TOKEN_FILE_DEFAULT = "~/.config/photodrop/token"


def _env(name: str) -> str:
    return (os.getenv(name) or "").strip()


def get_content_api_base_url() -> str:
    """Return the contents API base URL without a trailing slash.

    Env:
        CONTENT_API_BASE_URL – optional override (e.g., GitHub Enterprise).
    """
    return (_env("CONTENT_API_BASE_URL") or CONTENT_API_BASE_URL_DEFAULT).rstrip("/")


def get_content_repo() -> str:
    return _env("CONTENT_REPO")


def get_content_branch() -> str:
    return _env("CONTENT_BRANCH") or CONTENT_BRANCH_DEFAULT


def get_content_token() -> str:
    return _env("CONTENT_TOKEN")


def get_photos_root() -> str:
    return (_env("PHOTOS_ROOT") or PHOTOS_ROOT_DEFAULT).strip("/") or PHOTOS_ROOT_DEFAULT


def get_site_base_url() -> str:
    """Public site base used to derive event view links ("" when unset)."""
    return _env("SITE_BASE_URL")


def get_events_catalog_source() -> str:
    return _env("EVENTS_CATALOG") or EVENTS_CATALOG_DEFAULT


def get_token_file() -> Path:
    return Path(_env("PHOTODROP_TOKEN_FILE") or TOKEN_FILE_DEFAULT).expanduser()


# --- Timeouts ----------------------------------------------------------------

def _parse_float_env(name: str) -> float | None:
    raw = _env(name)
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    if value <= 0:
        return None
    return value


def get_content_api_timeout() -> float | None:
    """Per-request timeout in seconds; None leaves the transport default."""
    return _parse_float_env("CONTENT_API_TIMEOUT")


# --- Upload limits -----------------------------------------------------------

UPLOAD_MAX_BYTES_DEFAULT = 50 * 1024 * 1024


def _parse_int_env(name: str, default: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return value


def get_upload_max_bytes() -> int:
    """Maximum total bytes of one API upload batch (default 50 MiB).

    Env:
        UPLOAD_MAX_BYTES – positive integer override.
    """
    return _parse_int_env("UPLOAD_MAX_BYTES", UPLOAD_MAX_BYTES_DEFAULT)


__all__ = [
    "UPLOAD_MAX_BYTES_DEFAULT",
    "get_upload_max_bytes",
    "CONTENT_API_BASE_URL_DEFAULT",
    "CONTENT_BRANCH_DEFAULT",
    "EVENTS_CATALOG_DEFAULT",
    "get_content_api_base_url",
    "get_content_repo",
    "get_content_branch",
    "get_content_token",
    "get_photos_root",
    "get_site_base_url",
    "get_events_catalog_source",
    "get_token_file",
    "get_content_api_timeout",
]
