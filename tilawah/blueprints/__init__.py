"""
Tilawah Rotation Tracker
Blueprint registry and shared request helpers.
"""

import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from tilawah.core.exceptions import AlreadyLockedError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def json_body():
    """Return the JSON object body, or an error tuple for malformed input.

    Usage::

        data, err = json_body()
        if err:
            return err
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None, (jsonify({"error": "Request body must be a JSON object"}), 400)
    return data, None


def query_limit(default=None, max_limit=200):
    """Parse an optional ``?limit=`` query param (ignored when invalid)."""
    try:
        limit = int(request.args.get("limit", default or 0))
    except (ValueError, TypeError):
        return default
    if limit <= 0:
        return default
    return min(limit, max_limit)


def query_flag(name):
    return request.args.get(name, "").lower() in ("1", "true", "yes")


def register_error_handlers(bp):
    """Map domain exceptions raised by services to HTTP responses."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return jsonify({"error": str(error)}), 404

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return jsonify({"error": str(error), "details": error.details}), 422

    @bp.errorhandler(AlreadyLockedError)
    def _handle_already_locked(error: AlreadyLockedError):
        return jsonify({"error": str(error), "code": "already_locked"}), 409

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return jsonify({"error": "Internal server error"}), 500
