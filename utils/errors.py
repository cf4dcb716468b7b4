"""Error types shared by every API route, and the single place they map to HTTP responses."""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from utils.logging_utils import app_logger, log_exception, log_warning


class ApiError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'message': self.message}


class ValidationError(ApiError):
    """Malformed or missing input; carries per-field messages."""
    status_code = 400
    default_message = 'Invalid request data'

    def __init__(self, message=None, fields=None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self):
        body = super().to_dict()
        if self.fields:
            body['errors'] = self.fields
        return body


class AuthenticationError(ApiError):
    status_code = 401
    default_message = 'Authentication required'


class AuthorizationError(ApiError):
    status_code = 403
    default_message = 'Forbidden'


class NotFoundError(ApiError):
    status_code = 404
    default_message = 'Not found'


class ConflictError(ApiError):
    status_code = 409
    default_message = 'Resource already exists'


class RateLimitError(ApiError):
    status_code = 429
    default_message = 'Rate limit exceeded. Please try again later.'


def register_error_handlers(app):
    """Install JSON error handlers for the API error taxonomy on a Flask app."""

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            log_exception(app_logger, "Request failed", path=request.path)
        elif error.status_code != 404:
            log_warning(app_logger, "Request rejected", path=request.path,
                        status=error.status_code, error=error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        log_exception(app_logger, "Unhandled exception", path=request.path, error=str(error))
        return jsonify({'message': 'Internal server error'}), 500
