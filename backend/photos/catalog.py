"""
Event catalog reader (`data/events.json`).

The uploader only needs event ids (to offer a choice and to reject unknown
ids) and titles (for listings). Rendering fields are ignored.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import requests

_log = logging.getLogger("photodrop.uploads")


class CatalogError(Exception):
    """The catalog source could not be read or parsed."""


@dataclass(frozen=True)
class EventEntry:
    id: str
    title: str


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _read_source(source: str, *, timeout: float | None) -> Any:
    if _is_url(source):
        try:
            resp = requests.get(source, timeout=timeout)
        except requests.RequestException as exc:
            raise CatalogError(f"failed to load events: {type(exc).__name__}") from exc
        if resp.status_code != 200:
            raise CatalogError(f"failed to load events: status={resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise CatalogError("failed to load events: invalid JSON") from exc
    path = Path(source)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CatalogError(f"failed to load events: {exc.strerror or exc}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogError("failed to load events: invalid JSON") from exc


def parse_events(data: Any) -> list[EventEntry]:
    """Return entries in catalog order; entries without an id are dropped."""
    events = data.get("events") if isinstance(data, dict) else None
    if not isinstance(events, list):
        return []
    out: list[EventEntry] = []
    for item in events:
        if not isinstance(item, dict):
            continue
        event_id = str(item.get("id") or "").strip()
        if not event_id:
            continue
        out.append(EventEntry(id=event_id, title=str(item.get("title") or event_id)))
    return out


def load_event_catalog(source: str, *, timeout: float | None = None) -> list[EventEntry]:
    entries = parse_events(_read_source(source, timeout=timeout))
    _log.debug("Loaded %d events from %s", len(entries), source)
    return entries


def event_ids(entries: Iterable[EventEntry]) -> frozenset[str]:
    return frozenset(e.id for e in entries)


__all__ = ["CatalogError", "EventEntry", "parse_events", "load_event_catalog", "event_ids"]
