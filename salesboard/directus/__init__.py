"""
Directus client package - read-only access to the ``/items`` REST API.

Modules:
- core: HTTP helpers, bearer auth, retry on 429/503
- items: paged collection reads, error sink, concurrent fetching
"""

from .core import (
    MAX_BODY_SNIPPET,
    RETRY_STATUSES,
    build_headers,
    build_url,
    ping,
    request_with_retry,
)

from .items import (
    CollectionSpec,
    FetchError,
    FetchErrors,
    fetch_all_paged,
    fetch_collections,
)

__all__ = [
    # Core
    "MAX_BODY_SNIPPET",
    "RETRY_STATUSES",
    "build_headers",
    "build_url",
    "ping",
    "request_with_retry",
    # Items
    "CollectionSpec",
    "FetchError",
    "FetchErrors",
    "fetch_all_paged",
    "fetch_collections",
]
