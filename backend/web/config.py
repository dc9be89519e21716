"""
Configuration and startup security checks for the photo upload API.

Why: The API forwards operator tokens to the content store. In production we
must not send them over plain HTTP or to a half-configured target.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os

from backend.storage.config import get_content_api_base_url


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Checks (prod/stage only):
    - CONTENT_API_BASE_URL must use https.
    - CONTENT_REPO must be set so uploads cannot target an arbitrary repo.
    """
    env = os.getenv("PHOTODROP_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    base = get_content_api_base_url()
    if not base.lower().startswith("https://"):
        raise SystemExit(
            "Refusing to start: CONTENT_API_BASE_URL must use https in production."
        )

    if not (os.getenv("CONTENT_REPO") or "").strip():
        raise SystemExit("Refusing to start: CONTENT_REPO must be set in production.")


__all__ = ["ensure_secure_config_on_startup"]
