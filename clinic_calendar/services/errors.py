"""Central place to log unexpected route failures."""

from __future__ import annotations

from flask import current_app, has_request_context, request


def record_exception(where: str, exc: BaseException) -> None:
    path = request.path if has_request_context() else "-"
    current_app.logger.exception("Unhandled error in %s (%s): %s", where, path, exc, exc_info=exc)
