"""Security helpers: headers and rate limiting for the store API."""

from __future__ import annotations

from flask import g, jsonify, request
from flask_limiter.errors import RateLimitExceeded

from clinic_calendar.extensions import limiter

WRITE_LIMIT = "60 per minute"


def init_security(app) -> None:
    protected_blueprints = (
        "appointments",
        "patients",
    )
    for bp_name in protected_blueprints:
        bp = app.blueprints.get(bp_name)
        if bp is not None:
            limiter.limit(WRITE_LIMIT, methods=["POST", "PATCH", "PUT", "DELETE"])(bp)

    @limiter.request_filter
    def skip_rate_limits() -> bool:  # type: ignore[unused-local]
        return request.endpoint in {"static"}

    @app.before_request
    def mark_api_requests() -> None:
        g.nostore = request.path.startswith("/api/")

    @app.after_request
    def apply_headers(response):
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        if getattr(g, "nostore", False):
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(exc: RateLimitExceeded):  # type: ignore[override]
        app.logger.warning("Rate limit hit on %s", request.endpoint or "global")
        return jsonify({"success": False, "errors": ["Too many requests"]}), 429
