"""
Caller-owned credential store for the upload CLI ("remember my token").

Why: Operators re-run uploads often; retyping a token each time is error
prone. The upload engine itself never reads or writes this store. Callers
resolve a token and hand it to the engine per batch.

Security: The token is written to a single file with 0600 permissions. It is
never logged.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

_log = logging.getLogger("photodrop.credentials")


class TokenStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get(self) -> Optional[str]:
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return value or None

    def save(self, token: str) -> None:
        token = (token or "").strip()
        if not token:
            raise ValueError("token_missing")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(token + "\n")
        os.chmod(self.path, 0o600)
        _log.info("Saved token to %s", self.path)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        _log.info("Removed saved token %s", self.path)


__all__ = ["TokenStore"]
