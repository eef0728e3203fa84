from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

from services.errors import (
    AlreadyExists,
    AuthError,
    HashingFailure,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    StorageFailure,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app):
    # Marshmallow validation errors: bad input shape
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", "Invalid input", 400, details=err.messages)

    @app.errorhandler(ValidationFailure)
    def handle_validation_failure(err: ValidationFailure):
        return error_response(err.code, err.message, 400)

    @app.errorhandler(AlreadyExists)
    def handle_already_exists(err: AlreadyExists):
        return error_response(err.code, err.message, 409)

    @app.errorhandler(NotFound)
    def handle_not_found(err: NotFound):
        return error_response(err.code, err.message, 404)

    # Credentials and tokens: one fixed message each, the reason stays in the logs
    @app.errorhandler(InvalidCredentials)
    def handle_invalid_credentials(err: InvalidCredentials):
        return error_response(err.code, InvalidCredentials.message, 401)

    @app.errorhandler(InvalidToken)
    def handle_invalid_token(err: InvalidToken):
        return error_response(err.code, InvalidToken.message, 401)

    @app.errorhandler(StorageFailure)
    @app.errorhandler(HashingFailure)
    def handle_internal_failure(err: AuthError):
        logger.error("request failed: %s", err.__class__.__name__, exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)

    # Werkzeug HTTPExceptions (abort(), 404 routing, 405) map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(HTTP_ERROR_CODES.get(status, "BAD_REQUEST"), err.description, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        # In dev, include exception details to speed up debugging
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
