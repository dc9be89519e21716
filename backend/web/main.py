"Photo upload API"
from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI

from backend.web.config import ensure_secure_config_on_startup
from backend.web.routes.uploads import uploads_router

logger = logging.getLogger("photodrop.web")


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never under pytest; tests set their own env.
    - PHOTODROP_ENABLE_DOTENV opts out (default true outside pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("PHOTODROP_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

ensure_secure_config_on_startup()

app = FastAPI(
    title="photodrop",
    description="Event photo uploads into the site repository",
    version="0.1.0",
)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


app.include_router(uploads_router)
