"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend for the API tests and keep
env-driven configuration from leaking between test cases.
"""
import sys
from pathlib import Path

import pytest

# Ensure `backend.*` and the shared test helpers in `utils/` are importable.
REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = REPO_ROOT / "backend" / "tests"
for p in (str(REPO_ROOT), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_photodrop_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Start every test from default configuration.

    Behavior:
        - Clears all env vars the uploader reads so a developer's `.env` or
          shell cannot change test outcomes.
        - Points the token file and the event catalog into `tmp_path` so no
          test touches the real home directory.
    """
    for var in (
        "PHOTODROP_ENV",
        "CONTENT_API_BASE_URL",
        "CONTENT_REPO",
        "CONTENT_BRANCH",
        "CONTENT_TOKEN",
        "CONTENT_API_TIMEOUT",
        "PHOTOS_ROOT",
        "SITE_BASE_URL",
        "UPLOAD_MAX_BYTES",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PHOTODROP_TOKEN_FILE", str(tmp_path / "token"))
    monkeypatch.setenv("EVENTS_CATALOG", str(tmp_path / "missing-events.json"))
    yield


@pytest.fixture
def png_bytes() -> bytes:
    from utils.image_fixtures import png_bytes as _png

    return _png()
