"""Blueprint exposing the executive sales dashboard API."""

from flask import Blueprint, current_app, jsonify, request

from .directus import FetchErrors
from .domain.executive import ExecutiveDashboardService, ExecutiveQuery
from .metrics import EXECUTIVE_BUILD_SECONDS, EXECUTIVE_REQUESTS_TOTAL

bp = Blueprint("sales", __name__)


@bp.route("/api/sales/executive", methods=["GET"])
def executive_dashboard():
    """Return KPIs, division totals, trend and heatmap for a date range."""
    errors = FetchErrors()
    query = ExecutiveQuery.from_args(request.args)
    service = ExecutiveDashboardService(query, errors=errors)

    try:
        with EXECUTIVE_BUILD_SECONDS.time():
            result = service.build()
    except Exception as exc:
        current_app.logger.exception("Executive dashboard failed: %s", exc)
        EXECUTIVE_REQUESTS_TOTAL.labels(outcome="error").inc()
        return (
            jsonify(
                {
                    "error": "Failed to build executive sales dashboard",
                    "details": str(exc),
                    "hint": "Check _debug.errors for Directus auth or field permission problems.",
                    "_debug": service.debug_info(),
                }
            ),
            500,
        )

    EXECUTIVE_REQUESTS_TOTAL.labels(outcome=result.outcome).inc()
    if result.warnings:
        current_app.logger.warning(
            "Executive dashboard served partial data: %s", "; ".join(result.warnings)
        )
    return jsonify(result.payload), result.status_code
