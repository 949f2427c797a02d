# penwise/errors.py
import logging
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class PenwiseError(Exception):
    """Base error carrying the HTTP status it is reported with."""
    status_code = 500
    message = 'An unknown error occurred'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(PenwiseError):
    status_code = 400
    message = 'Invalid request'


class NotFound(PenwiseError):
    status_code = 404
    message = 'Not found'


class Unauthenticated(PenwiseError):
    status_code = 401
    message = 'User not authenticated'


class ProfileLookupFailure(PenwiseError):
    status_code = 500
    message = 'Failed to fetch user profile'


class InsufficientCredits(PenwiseError):
    status_code = 402
    message = 'Insufficient credits'


class UpstreamRateLimited(PenwiseError):
    status_code = 429
    message = 'AI service rate limit exceeded. Please try again in a moment.'


class UpstreamQuotaExhausted(PenwiseError):
    status_code = 402
    message = 'AI service credits depleted. Please contact support.'


class UpstreamFailure(PenwiseError):
    status_code = 500
    message = 'AI generation failed'


# Recovered internally, never rendered as a response.

class MalformedStreamRecord(ValueError):
    pass


class CreditWriteFailure(RuntimeError):
    pass


def error_response(message, status_code):
    response = jsonify({'error': message})
    response.status_code = status_code
    return response


def register_error_handlers(app):
    @app.errorhandler(PenwiseError)
    def handle_penwise_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        return error_response(error.message, error.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return error_response(error.description, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error: {error}")
        return error_response(PenwiseError.message, 500)
