"""Error handlers for the application.

Typed errors from the core layer are translated to HTTP responses here and
nowhere else.
"""
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import HTTPException

from provincial_hr.core.errors import ApiError, TooManyRequests

from .responses import error_response


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError):
        response, status = error_response(error.message, error.status, error.code)
        if isinstance(error, TooManyRequests) and error.retry_after:
            response.headers["Retry-After"] = str(error.retry_after)
        return response, status

    @app.errorhandler(DuplicateKeyError)
    def handle_duplicate_key(error):
        app.logger.warning(f"Duplicate key: {error.details}")
        return error_response("A record with the same unique value already exists", 409)

    @app.errorhandler(InvalidId)
    def handle_invalid_id(error):
        return error_response("Invalid ID format", 400)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        """Routing 404, 405, 413 and malformed request bodies."""
        if error.code == 404:
            return error_response("Resource not found", 404)
        # abort(..., description=...) carries a client-safe message
        if error.description and error.description != type(error).description:
            return error_response(error.description, error.code or 500)
        if error.code == 400:
            return error_response("Malformed request", 400)
        return error_response(error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # ALWAYS log the full error (even in production) - logs are secure
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return error_response("Internal server error", 500)
