"""Shared Prometheus metrics used across the application."""

from prometheus_client import Counter, Histogram


DIRECTUS_FETCH_ERRORS_TOTAL = Counter(
    "salesboard_directus_fetch_errors_total",
    "Total number of failed Directus requests grouped by collection and status code.",
    ["collection", "status"],
)
DIRECTUS_FETCH_RETRIES_TOTAL = Counter(
    "salesboard_directus_fetch_retries_total",
    "Total number of retry attempts performed after transient Directus responses.",
    ["collection"],
)
DIRECTUS_BACKOFF_SLEEP_SECONDS = Counter(
    "salesboard_directus_backoff_sleep_seconds",
    "Total duration spent sleeping between Directus retries.",
    ["collection"],
)
DIRECTUS_PAGE_SECONDS = Histogram(
    "salesboard_directus_page_duration_seconds",
    "Duration of a single Directus page request in seconds.",
    ["collection"],
)
DIRECTUS_ROWS_FETCHED_TOTAL = Counter(
    "salesboard_directus_rows_fetched_total",
    "Total number of rows received from Directus grouped by collection.",
    ["collection"],
)
EXECUTIVE_REQUESTS_TOTAL = Counter(
    "salesboard_executive_requests_total",
    "Total number of executive dashboard requests grouped by outcome.",
    ["outcome"],
)
EXECUTIVE_BUILD_SECONDS = Histogram(
    "salesboard_executive_build_duration_seconds",
    "Duration of a full executive dashboard build including fetches.",
)

EXECUTIVE_REQUESTS_TOTAL.labels(outcome="ok").inc(0)
EXECUTIVE_REQUESTS_TOTAL.labels(outcome="partial").inc(0)
EXECUTIVE_REQUESTS_TOTAL.labels(outcome="fetch_failed").inc(0)
EXECUTIVE_REQUESTS_TOTAL.labels(outcome="error").inc(0)
