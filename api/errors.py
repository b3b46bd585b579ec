from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
import logging

from utils.exceptions import (
    InvalidCredentials,
    InvalidOrExpiredToken,
    NotAuthorized,
    StorageUnavailable,
    UsernameTaken,
)

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "VALIDATION_ERROR",
    503: "SERVICE_UNAVAILABLE",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def not_found_response():
    return error_response("NOT_FOUND", "Resource not found", 404)


def register_error_handlers(app):
    # 404 Not Found; NotAuthorized shares the exact same body
    @app.errorhandler(404)
    def not_found(e):
        return not_found_response()

    @app.errorhandler(NotAuthorized)
    def handle_not_authorized(err: NotAuthorized):
        return not_found_response()

    # Authentication failures: 401 with a generic message, no reason given
    @app.errorhandler(InvalidCredentials)
    def handle_invalid_credentials(err: InvalidCredentials):
        return error_response("UNAUTHORIZED", InvalidCredentials.message, 401)

    @app.errorhandler(InvalidOrExpiredToken)
    def handle_invalid_token(err: InvalidOrExpiredToken):
        response, status = error_response("UNAUTHORIZED", InvalidOrExpiredToken.message, 401)
        response.headers["WWW-Authenticate"] = "Bearer"
        return response, status

    @app.errorhandler(UsernameTaken)
    def handle_username_taken(err: UsernameTaken):
        return error_response("CONFLICT", UsernameTaken.message, 409)

    @app.errorhandler(StorageUnavailable)
    def handle_storage_unavailable(err: StorageUnavailable):
        logger.error("Storage unavailable", exc_info=err)
        return error_response("SERVICE_UNAVAILABLE", StorageUnavailable.message, 503)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        logger.error("Database operational error", exc_info=err)
        return error_response("SERVICE_UNAVAILABLE", StorageUnavailable.message, 503)

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
        details = {"db_error": message} if current_app.debug else None
        if current_app.debug:
            logger.exception("Integrity error", exc_info=err)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response("CONFLICT", "Unique constraint violated.", 409, details=details)
        if "foreign key constraint" in lower_msg or "foreign key mismatch" in lower_msg:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400, details=details)
        if "check constraint" in lower_msg or "constraint failed" in lower_msg:
            return error_response("BAD_REQUEST", "Check constraint failed.", 400, details=details)
        return error_response("BAD_REQUEST", "Integrity error.", 400, details=details)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(HTTP_ERROR_CODES.get(status, "BAD_REQUEST"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        # In dev, include exception details to speed up debugging
        if current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
