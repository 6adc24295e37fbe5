"""Domain errors for authentication, authorization and user storage.

Each error carries a client-safe message and the HTTP status it maps to;
the handlers in flowiq.main render them as {"detail": message}.
"""


class FlowIQError(Exception):
    """Base class for errors that are recovered at the HTTP boundary."""

    status_code = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(FlowIQError):
    """Missing or malformed input (e.g. email or password absent)."""

    status_code = 400


class DuplicateEmailError(FlowIQError):
    """Email already belongs to another user (unique index violation)."""

    status_code = 409

    def __init__(self, message: str = "Email already exists") -> None:
        super().__init__(message)


class InvalidCredentialsError(FlowIQError):
    """Unknown email or wrong password. Same message for both."""

    status_code = 401

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class SessionInvalidError(FlowIQError):
    """Missing, malformed, forged or expired session token."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class PermissionDeniedError(FlowIQError):
    """Authenticated, but the role lacks the required permission."""

    status_code = 403

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message)


class NotFoundError(FlowIQError):
    status_code = 404


class StorageError(FlowIQError):
    """Database unreachable or failed for a reason other than email uniqueness."""

    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
