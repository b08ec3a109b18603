"""Paged readers for Directus ``/items`` collections."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional
from urllib.parse import quote

from requests.exceptions import HTTPError, RequestException

from ..config import directus_base_url, settings
from ..metrics import (
    DIRECTUS_FETCH_ERRORS_TOTAL,
    DIRECTUS_PAGE_SECONDS,
    DIRECTUS_ROWS_FETCHED_TOTAL,
)
from .core import describe_error_response, request_with_retry

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchError:
    collection: str
    status: Optional[int]
    message: str
    url: str

    def to_dict(self) -> dict:
        return asdict(self)


class FetchErrors:
    """Thread-safe sink collecting per-collection fetch failures."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: List[FetchError] = []

    def record(
        self, collection: str, status: Optional[int], message: str, url: str
    ) -> FetchError:
        error = FetchError(collection, status, message, url)
        with self._lock:
            self._items.append(error)
        return error

    def collections(self) -> set:
        with self._lock:
            return {item.collection for item in self._items}

    def as_list(self) -> List[dict]:
        with self._lock:
            return [item.to_dict() for item in self._items]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __bool__(self) -> bool:
        return len(self) > 0


@dataclass(frozen=True)
class CollectionSpec:
    """What to read from one collection."""

    name: str
    fields: str
    page_size: Optional[int] = None


def _page_url(collection: str, fields: str, limit: int, offset: int) -> str:
    return (
        f"{directus_base_url()}/items/{collection}"
        f"?fields={quote(fields, safe='')}"
        f"&limit={limit}&offset={offset}"
    )


def _fetch_page(url: str, collection: str, errors: FetchErrors) -> Optional[list]:
    """Return one page of rows, or ``None`` after recording a failure."""
    try:
        with DIRECTUS_PAGE_SECONDS.labels(collection=collection).time():
            response = request_with_retry(url, collection=collection)
    except HTTPError as exc:
        response = exc.response
        status = getattr(response, "status_code", None)
        error = errors.record(collection, status, describe_error_response(response), url)
        LOGGER.warning("Directus %s failed with %s: %s", collection, status, error.message)
        return None
    except RequestException as exc:
        DIRECTUS_FETCH_ERRORS_TOTAL.labels(collection=collection, status="exception").inc()
        errors.record(collection, None, str(exc) or "Unknown fetch error", url)
        LOGGER.warning("Directus %s request error: %s", collection, exc)
        return None

    try:
        payload = response.json()
    except ValueError as exc:
        DIRECTUS_FETCH_ERRORS_TOTAL.labels(collection=collection, status="decode").inc()
        errors.record(collection, response.status_code, f"Invalid JSON: {exc}", url)
        LOGGER.warning("Directus %s returned invalid JSON", collection)
        return None

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        return []
    return data


def fetch_all_paged(
    collection: str,
    fields: str,
    errors: FetchErrors,
    page_size: Optional[int] = None,
    max_pages: Optional[int] = None,
) -> List[dict]:
    """Read every row of ``collection`` page by page.

    Stops at the first short page, after ``max_pages`` pages or on the first
    failure. Failures are recorded in ``errors``; rows read so far are kept.
    """
    page_size = page_size or int(settings.DIRECTUS_PAGE_SIZE)
    max_pages = max_pages or int(settings.DIRECTUS_MAX_PAGES)

    out: List[dict] = []
    offset = 0
    for _page in range(max_pages):
        url = _page_url(collection, fields, page_size, offset)
        chunk = _fetch_page(url, collection, errors)
        if chunk is None:
            break
        out.extend(chunk)
        if len(chunk) < page_size:
            break
        offset += page_size

    DIRECTUS_ROWS_FETCHED_TOTAL.labels(collection=collection).inc(len(out))
    return out


def fetch_collections(
    specs: Iterable[CollectionSpec],
    errors: FetchErrors,
    max_workers: Optional[int] = None,
) -> Dict[str, List[dict]]:
    """Fetch several collections concurrently and wait for all of them."""
    specs = list(specs)
    if not specs:
        return {}
    workers = max(1, min(max_workers or int(settings.FETCH_WORKERS), len(specs)))
    started = time.monotonic()

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="directus") as pool:
        futures = {
            spec.name: pool.submit(
                fetch_all_paged, spec.name, spec.fields, errors, spec.page_size
            )
            for spec in specs
        }
        results = {name: future.result() for name, future in futures.items()}

    LOGGER.debug(
        "Fetched %s collections in %.2fs (%s errors)",
        len(specs),
        time.monotonic() - started,
        len(errors),
    )
    return results


__all__ = [
    "CollectionSpec",
    "FetchError",
    "FetchErrors",
    "fetch_all_paged",
    "fetch_collections",
]
