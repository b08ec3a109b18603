"""
Low level HTTP helpers for the Directus REST API.

Contains: auth headers, retry on transient backpressure, error descriptions.
"""
import logging
import time
from typing import Optional

import requests
from requests import Response
from requests.exceptions import HTTPError

from ..config import directus_base_url, directus_token, settings
from ..metrics import (
    DIRECTUS_BACKOFF_SLEEP_SECONDS,
    DIRECTUS_FETCH_ERRORS_TOTAL,
    DIRECTUS_FETCH_RETRIES_TOTAL,
)

LOGGER = logging.getLogger(__name__)

RETRY_STATUSES = frozenset({429, 503})
MAX_BODY_SNIPPET = 700


def build_headers(token: Optional[str] = None) -> dict:
    """Return request headers, adding the bearer token when configured."""
    headers = {"Accept": "application/json"}
    token = token if token is not None else directus_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def build_url(path: str) -> str:
    base = directus_base_url()
    return f"{base}{'' if path.startswith('/') else '/'}{path}"


def _should_retry(status_code: int) -> bool:
    return status_code in RETRY_STATUSES


def _sleep_before_retry(delay: float, collection: str) -> None:
    if delay <= 0:
        return
    DIRECTUS_BACKOFF_SLEEP_SECONDS.labels(collection=collection).inc(delay)
    time.sleep(delay)


def request_with_retry(url: str, *, collection: str, **kwargs) -> Response:
    """Perform a GET request, retrying 429/503 with linear backoff.

    Network errors are not retried and propagate as
    :class:`requests.RequestException`. A final non-2xx response raises
    :class:`requests.HTTPError` carrying the response.
    """
    max_attempts = max(int(settings.DIRECTUS_RETRY_ATTEMPTS), 1)
    backoff = float(settings.DIRECTUS_RETRY_BACKOFF)
    kwargs.setdefault("timeout", float(settings.DIRECTUS_TIMEOUT))
    kwargs.setdefault("headers", build_headers())

    attempt = 0
    while True:
        attempt += 1
        response = requests.get(url, **kwargs)
        status_code = getattr(response, "status_code", None) or 0

        if _should_retry(status_code) and attempt < max_attempts:
            DIRECTUS_FETCH_RETRIES_TOTAL.labels(collection=collection).inc()
            delay = backoff * attempt
            LOGGER.info(
                "Directus returned %s for %s, retry %s/%s in %.1fs",
                status_code,
                collection,
                attempt,
                max_attempts - 1,
                delay,
            )
            _sleep_before_retry(delay, collection)
            continue

        try:
            response.raise_for_status()
        except HTTPError:
            DIRECTUS_FETCH_ERRORS_TOTAL.labels(
                collection=collection, status=str(status_code)
            ).inc()
            raise
        return response


def describe_error_response(response) -> str:
    """Return a short human readable description of a failed response."""
    if response is None:
        return "Directus request failed."

    message = None
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list):
            for entry in errors:
                if not isinstance(entry, dict):
                    continue
                text = entry.get("message")
                extensions = entry.get("extensions")
                code = extensions.get("code") if isinstance(extensions, dict) else None
                if text:
                    message = f"{code}: {text}" if code else str(text)
                    break

    if message is None:
        text = getattr(response, "text", None) or ""
        message = str(text).strip()

    return f"Directus request failed. {message[:MAX_BODY_SNIPPET]}".strip()


def ping() -> None:
    """Call ``/server/ping``; raise on any failure."""
    response = requests.get(
        build_url("/server/ping"),
        headers=build_headers(),
        timeout=min(float(settings.DIRECTUS_TIMEOUT), 5.0),
    )
    response.raise_for_status()
