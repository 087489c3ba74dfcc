"""Auth exceptions."""


class AuthException(Exception):
    """Base auth exception with HTTP status and a machine-readable code."""

    code = "AUTH_ERROR"
    status = 400

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else self.status
        if code is not None:
            self.code = code


class InvalidCredentials(AuthException):
    code = "INVALID_CREDENTIALS"
    status = 401


class Unauthenticated(AuthException):
    """Missing bearer token (401) or a token that fails verification (403)."""

    code = "UNAUTHENTICATED"
    status = 401


class TokenExpired(AuthException):
    code = "TOKEN_EXPIRED"
    status = 401


class InvalidRefresh(AuthException):
    code = "INVALID_REFRESH"
    status = 403


class SessionExpired(AuthException):
    code = "SESSION_EXPIRED"
    status = 401


class Forbidden(AuthException):
    code = "FORBIDDEN"
    status = 403


class AlreadyAdmin(AuthException):
    code = "ALREADY_ADMIN"
    status = 400


class NotFound(AuthException):
    code = "NOT_FOUND"
    status = 404


class Conflict(AuthException):
    code = "CONFLICT"
    status = 409


class InvalidRequest(AuthException):
    code = "INVALID_REQUEST"
    status = 400


class ResetLimitExceeded(AuthException):
    code = "RESET_LIMIT_EXCEEDED"
    status = 400


class RateLimited(AuthException):
    code = "RATE_LIMITED"
    status = 429


class StoreError(Exception):
    """Backing store failure; surfaces as a generic internal error."""
