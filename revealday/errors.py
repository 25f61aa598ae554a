from flask import jsonify, g, current_app, request
from redis.exceptions import RedisError
from werkzeug.exceptions import HTTPException


class AppError(Exception):
    """Base of the service error taxonomy. Carries its own HTTP status."""

    code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation error"


class BadRequest(AppError):
    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Bad request"


class Unauthorized(AppError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


class InvalidToken(Unauthorized):
    code = "INVALID_TOKEN"
    default_message = "Token is invalid"


class ExpiredToken(Unauthorized):
    code = "TOKEN_EXPIRED"
    default_message = "Token has expired"


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class AlreadyVoted(AppError):
    code = "ALREADY_VOTED"
    status_code = 409
    default_message = "This device has already voted"

    def __init__(self, previous_vote: str, message: str | None = None):
        self.previous_vote = previous_vote
        super().__init__(message, details={"previousVote": previous_vote})


class RateLimitError(AppError):
    code = "RATE_LIMITED"
    status_code = 429
    default_message = "Too many requests, please try again later"

    def __init__(self, message: str | None = None, retry_after: int | None = None):
        self.retry_after = retry_after
        details = {"retryAfter": retry_after} if retry_after else None
        super().__init__(message, details=details)


class IdAllocationError(AppError):
    code = "ID_ALLOCATION_FAILED"
    default_message = "Could not allocate a unique id, please try again"


class StoreError(AppError):
    code = "STORE_ERROR"
    default_message = "Backing store unavailable"


_BY_CODE = {
    cls.code: cls
    for cls in (
        ValidationError, BadRequest, Unauthorized, InvalidToken, ExpiredToken,
        NotFound, RateLimitError, IdAllocationError, StoreError,
    )
}


def from_envelope(status: int, body) -> AppError:
    """Rebuild the taxonomy member described by an error response body."""
    error = body.get("error") if isinstance(body, dict) else None
    error = error if isinstance(error, dict) else {}
    code = error.get("code")
    message = error.get("message")
    details = error.get("details") or {}

    if code == AlreadyVoted.code:
        return AlreadyVoted(details.get("previousVote"), message)
    if code == RateLimitError.code:
        return RateLimitError(message, retry_after=details.get("retryAfter"))

    cls = _BY_CODE.get(code)
    if cls is None:
        err = AppError(message or f"Request failed with status {status}", details or None)
        err.code = code or "HTTP_ERROR"
        err.status_code = status
        return err
    return cls(message, details or None)


def _payload(code: str, message: str, details=None, status=400):
    return (
        jsonify({
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details or None,
            },
            "request_id": getattr(g, "request_id", None),
        }),
        status,
    )


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(e: AppError):
        if e.status_code >= 500:
            current_app.logger.error(
                "%s request_id=%s path=%s: %s",
                e.code, getattr(g, "request_id", None), request.path, e.message,
            )
        response, status = _payload(e.code, e.message, e.details, status=e.status_code)
        if isinstance(e, RateLimitError) and e.retry_after:
            response.headers["Retry-After"] = str(e.retry_after)
        return response, status

    @app.errorhandler(RedisError)
    def handle_store_error(e: RedisError):
        current_app.logger.exception(
            "Backing store failure request_id=%s path=%s", getattr(g, "request_id", None), request.path
        )
        return _payload(StoreError.code, StoreError.default_message, status=500)

    # Generic HTTP errors (404, 405, etc.)
    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        desc = e.description
        if isinstance(desc, dict):
            code = desc.get("code") or e.name.replace(" ", "_").upper()
            message = desc.get("message") or e.name
            details = desc.get("errors") or desc.get("details")
            return _payload(code=code, message=message, details=details, status=e.code or 400)

        return _payload(
            code=e.name.replace(" ", "_").upper(),
            message=desc or e.name,
            details=None,
            status=e.code or 400,
        )

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        # Don't leak internals
        current_app.logger.exception(
            "Unhandled exception request_id=%s path=%s", getattr(g, "request_id", None), request.path
        )
        return _payload("INTERNAL_SERVER_ERROR", "An unexpected error occurred", status=500)
