"""
Transport encoding for the contents API.

Intent:
    The contents API carries object bodies as base64 text inside JSON. Photo
    bytes go out encoded and are never decoded here; manifest bodies travel
    both ways and must survive UTF-8 exactly.

Behavior:
    - Encoding is total over any byte sequence.
    - Decoding ignores whitespace (the API wraps base64 at 60 columns) and
      raises `DecodeError` on anything that is not strict base64 or UTF-8.
"""
from __future__ import annotations

import base64
import binascii
import re

_WHITESPACE_RE = re.compile(r"\s+")


class DecodeError(ValueError):
    """Transport text could not be decoded (corrupt object body)."""


def encode_binary(data: bytes) -> str:
    """Return the base64 text for `data`."""
    return base64.b64encode(bytes(data)).decode("ascii")


def decode_binary(text: str) -> bytes:
    clean = _WHITESPACE_RE.sub("", str(text or ""))
    try:
        return base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid base64 content: {exc}") from exc


def decode_to_text(text: str) -> str:
    """Decode transport text into a UTF-8 string (manifest bodies only)."""
    raw = decode_binary(text)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"content is not valid UTF-8: {exc.reason}") from exc


def encode_text(text: str) -> str:
    return encode_binary(str(text).encode("utf-8"))


__all__ = ["DecodeError", "encode_binary", "decode_binary", "decode_to_text", "encode_text"]
