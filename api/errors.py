from flask import jsonify, current_app, request
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
from flask_limiter.errors import RateLimitExceeded
import logging

from services.errors import ServiceError
from .responses import envelope

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = envelope(False, message, status, error=error)
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Domain errors raised by services and request guards
    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        # which check failed stays in the log, the client only gets err.message
        logger.info(
            "%s %s -> %s %s",
            request.method,
            request.path,
            err.status_code,
            err.__class__.__name__,
            extra={"error_type": err.__class__.__name__, "error_message": err.message},
        )
        return error_response(err.error_code, err.message, err.status_code)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Integrity errors (unique constraints, FK violations, check constraints)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        logger.warning("Integrity error: %s", message)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key constraint" in lower_msg or "foreign key mismatch" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Flask-Limiter raises this from its before_request hook
    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(err: RateLimitExceeded):
        logger.warning("Rate limit %s exceeded by %s on %s", err.description, request.remote_addr, request.path)
        return error_response("TOO_MANY_REQUESTS", "Too many requests, please try again later", 429)

    # Werkzeug HTTPExceptions (404, 405, abort(...)) keep their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(err.name.upper().replace(" ", "_"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
