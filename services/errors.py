"""
Auth error taxonomy. Each error carries a stable code, a caller-safe message
and the HTTP status the API layer maps it to.
"""


class AuthError(Exception):
    code = "AUTH_ERROR"
    status = 400
    default_message = "Authentication error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AlreadyExists(AuthError):
    code = "CONFLICT"
    status = 409
    default_message = "User already exists"


class InvalidCredentials(AuthError):
    code = "INVALID_CREDENTIALS"
    status = 401
    default_message = "Invalid email or password"


class AccountDeactivated(InvalidCredentials):
    # Answers exactly like InvalidCredentials unless EXPOSE_DEACTIVATED_LOGIN is on
    public_message = "Account is deactivated"


class IncorrectCurrentPassword(InvalidCredentials):
    status = 400
    default_message = "Current password is incorrect"


class InvalidRefreshToken(AuthError):
    code = "INVALID_REFRESH_TOKEN"
    status = 401
    default_message = "Invalid refresh token"


class InvalidToken(AuthError):
    code = "INVALID_TOKEN"
    status = 401
    default_message = "Invalid token"


class Unauthorized(AuthError):
    code = "UNAUTHORIZED"
    status = 401
    default_message = "No token provided"


class Forbidden(AuthError):
    code = "FORBIDDEN"
    status = 403
    default_message = "Insufficient permissions"


class AccountNotFound(AuthError):
    code = "NOT_FOUND"
    status = 404
    default_message = "Account not found"


class InvalidInput(AuthError):
    code = "VALIDATION_ERROR"
    status = 422
    default_message = "Invalid input"
