"""Batch-upload event photos into the content repository.

Writes each image under `assets/photos/<event>/` and appends it to the event's
`manifest.json` with one conditional write at the end.

Usage example:

    python -m backend.tools.upload_event_photos \
        --repo cookiesquad/site \
        --event 2024-10-05 \
        --remember \
        ~/Pictures/event/*.jpg

Environment variables (CONTENT_REPO, CONTENT_BRANCH, CONTENT_TOKEN,
EVENTS_CATALOG, SITE_BASE_URL, CONTENT_API_BASE_URL) can be used instead of
CLI flags; a `.env` file in the working directory is loaded first.

If the manifest write reports a conflict, someone else updated the event in
the meantime. Photos written so far stay in the repository unreferenced; run
the command again to upload against the current manifest.
"""

from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from backend.photos.catalog import CatalogError, event_ids, load_event_catalog
from backend.photos.credentials import TokenStore
from backend.photos.domain import CandidateFile
from backend.photos.upload import UploadBatchInput, UploadBatchUseCase
from backend.storage import config
from backend.storage.errors import ConflictError

logger = logging.getLogger("photodrop.tools.upload")


def read_candidate(path: Path) -> CandidateFile:
    """Load one file; the content type is guessed from its name."""
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return CandidateFile(name=path.name, content_type=content_type, data=path.read_bytes())


def resolve_token(explicit: str | None, store: TokenStore) -> str:
    """Pick the token: flag, then CONTENT_TOKEN, then the saved one."""
    return (explicit or "").strip() or config.get_content_token() or (store.get() or "")


def _known_ids(source: str | None) -> frozenset[str] | None:
    if not source:
        return None
    try:
        return event_ids(load_event_catalog(source, timeout=config.get_content_api_timeout()))
    except CatalogError as exc:
        # An unreadable catalog must not block uploads
        logger.warning("Event catalog unavailable (%s); skipping event check", exc)
        return None


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upload event photos and update the event manifest")
    parser.add_argument("files", nargs="*", type=Path, help="Photo files to upload (in order)")
    parser.add_argument("--repo", default=config.get_content_repo(), help="Target repository as owner/repo")
    parser.add_argument("--branch", default=config.get_content_branch())
    parser.add_argument("--event", dest="event_id", default="", help="Event id (e.g. 2024-10-05)")
    parser.add_argument("--token", default=None, help="Bearer token (defaults to CONTENT_TOKEN or the saved token)")
    remember = parser.add_mutually_exclusive_group()
    remember.add_argument("--remember", action="store_true", help="Save the token for later runs")
    remember.add_argument("--forget", action="store_true", help="Delete a previously saved token")
    parser.add_argument("--catalog", default=config.get_events_catalog_source(), help="Path or URL of events.json")
    parser.add_argument("--no-catalog", action="store_true", help="Do not check the event id against the catalog")
    parser.add_argument("--list-events", action="store_true", help="Print the event catalog and exit")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None, *, use_case: UploadBatchUseCase | None = None) -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s:%(message)s")
    args = _parse_args(argv)

    if args.list_events:
        try:
            entries = load_event_catalog(args.catalog, timeout=config.get_content_api_timeout())
        except CatalogError as exc:
            logger.error("%s", exc)
            return 1
        for entry in entries:
            print(f"{entry.id}\t{entry.title}")
        return 0

    store = TokenStore(config.get_token_file())
    token = resolve_token(args.token, store)
    if args.forget:
        store.clear()

    missing = [p for p in args.files if not p.is_file()]
    if missing:
        logger.error("Not a file: %s", ", ".join(str(p) for p in missing))
        return 2

    try:
        candidates = [read_candidate(p) for p in args.files]
    except OSError as exc:
        logger.error("Cannot read %s: %s", exc.filename or "file", exc.strerror or exc)
        return 2

    req = UploadBatchInput(
        repo=args.repo,
        branch=args.branch,
        event_id=args.event_id,
        token=token,
        files=candidates,
        known_event_ids=None if args.no_catalog else _known_ids(args.catalog),
    )
    outcome = (use_case or UploadBatchUseCase()).run(req, on_progress=print)

    if outcome.ok and args.remember and token:
        store.save(token)

    if not outcome.ok:
        if isinstance(outcome.error, ConflictError):
            logger.error("Manifest changed since it was read; re-run to upload against the current version")
        else:
            logger.error("Upload failed")
        return 1
    logger.info("Upload complete")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual entry point
    sys.exit(main())
