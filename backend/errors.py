"""
Exceptions raised by the API layer.

Route handlers raise these instead of building error responses by hand;
``register_error_handlers`` turns them into JSON bodies with the matching
status code. Anything else that escapes a handler rolls the session back and
becomes a generic 500.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class CachedInfoError(Exception):
    """Base exception for all API errors"""

    status_code = 500

    def __init__(self, message, code="server_error", details=None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        body = {"error": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(CachedInfoError):
    """Field-level validation failed; ``errors`` maps field name to message"""

    status_code = 400

    def __init__(self, errors, message="Validation failed"):
        self.errors = dict(errors)
        super().__init__(message, code="validation_failed")

    def to_dict(self):
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class NotFoundError(CachedInfoError):
    status_code = 404

    def __init__(self, entity, entity_id=None):
        message = f"{entity} not found"
        super().__init__(message, code="not_found",
                         details={"id": entity_id} if entity_id is not None else None)


class AuthenticationError(CachedInfoError):
    status_code = 401

    def __init__(self, message="Authentication required"):
        super().__init__(message, code="unauthorized")


class AuthorizationError(CachedInfoError):
    status_code = 403

    def __init__(self, message="Admin access required"):
        super().__init__(message, code="forbidden")


class ConflictError(CachedInfoError):
    status_code = 409

    def __init__(self, message):
        super().__init__(message, code="conflict")


def register_error_handlers(app, db):
    @app.errorhandler(CachedInfoError)
    def _handle_api_error(err):
        if err.status_code >= 500:
            logger.error("api error: %s", err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def _handle_http_error(err):
        return jsonify({"error": err.name.lower().replace(" ", "_"), "message": err.description}), err.code

    @app.errorhandler(Exception)
    def _handle_unexpected(err):
        db.session.rollback()
        logger.exception("unhandled error")
        return jsonify({"error": "server_error"}), 500
