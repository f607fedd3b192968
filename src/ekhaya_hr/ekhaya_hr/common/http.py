from __future__ import annotations

import logging
from functools import wraps

from flask import g, jsonify, request, session

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..users.service import SessionUser

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ValidationError, 400),
)


def login_required(view):
    """Reject anonymous callers and expose the session user as ``g.user``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        user = SessionUser.from_session(session)
        if user is None:
            return jsonify({"error": "Unauthorized"}), 401
        g.user = user
        return view(*args, **kwargs)

    return wrapper


def error_response(exc: Exception):
    if isinstance(exc, DomainError):
        for error_cls, status in _STATUS_BY_ERROR:
            if isinstance(exc, error_cls):
                return jsonify({"error": str(exc)}), status
        return jsonify({"error": str(exc)}), 400
    logger.exception("unhandled error while serving request")
    return jsonify({"error": "Internal server error"}), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
