"""Blueprint exposing diagnostics and metrics endpoints."""

from __future__ import annotations

from typing import Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from requests.exceptions import RequestException

from . import directus
from .config import directus_base_url, directus_token


bp = Blueprint("diagnostics", __name__)


def _check_directus() -> Tuple[str, str]:
    """Ping the Directus server."""

    try:
        directus.ping()
        return "ok", ""
    except RequestException as exc:
        current_app.logger.error("Directus health check failed: %s", exc)
        return "error", str(exc)


@bp.route("/healthz")
def healthz():
    """Return status of dependent services."""

    checks: Dict[str, Tuple[str, str]] = {
        "directus": _check_directus(),
    }

    overall = "ok" if all(status == "ok" for status, _ in checks.values()) else "error"
    response = {
        "status": overall,
        "directusUrl": directus_base_url() + "/",
        "hasToken": bool(directus_token()),
        "checks": {
            name: {"status": status, "details": detail}
            for name, (status, detail) in checks.items()
        },
    }
    http_status = 200 if overall == "ok" else 503
    return jsonify(response), http_status


@bp.route("/metrics")
def metrics() -> Response:
    """Expose Prometheus metrics."""

    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
