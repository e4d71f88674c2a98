"""
Password Reset Domain Errors

Every failure of the reset workflow has a stable code and a fixed message.
Messages are shown to callers verbatim, so they must not reveal more than
the code does (mismatched and expired tokens share InvalidTokenError).
"""


class PasswordResetError(Exception):
    """Base class for password reset failures."""

    code = "PASSWORD_RESET_ERROR"
    message = "Password reset failed"

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class MissingIdentifierError(PasswordResetError):
    code = "MISSING_IDENTIFIER"
    message = "Please provide username or email"


class UserNotFoundError(PasswordResetError):
    code = "USER_NOT_FOUND"
    message = "User does not exist"


class MalformedTokenError(PasswordResetError):
    """Token is not a structurally valid encoding."""

    code = "MALFORMED_TOKEN"
    message = "Malformed Token"


class InvalidTokenError(PasswordResetError):
    """Token decodes but does not match a live pending reset."""

    code = "INVALID_TOKEN"
    message = "Invalid Token"


class WeakPasswordError(PasswordResetError):
    code = "WEAK_PASSWORD"
    message = "Password does not meet criteria"


class NoSessionError(PasswordResetError):
    code = "NO_SESSION"
    message = "Session does not exist"


class ExternalSyncError(PasswordResetError):
    code = "EXTERNAL_SYNC_FAILED"
    message = "Mattermost did not set password"


class UnexpectedError(PasswordResetError):
    """Collaborator failure outside the domain taxonomy. The underlying error is chained."""

    code = "UNEXPECTED_ERROR"
    message = "Unexpected error"
