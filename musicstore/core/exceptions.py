from dataclasses import dataclass


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str


class AppError(Exception):
    """Base for errors the API layer renders as an envelope."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: str | None = None, violations: list[FieldViolation] | None = None):
        self.violations = list(violations or [])
        if message is None and self.violations:
            message = "; ".join(v.message for v in self.violations)
        super().__init__(message)


class AuthenticationError(AppError):
    status_code = 401
    default_message = "Not authenticated"


class UnauthorizedError(AppError):
    """Caller is authenticated but not allowed to act on the resource."""

    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class StorageError(AppError):
    status_code = 500
    default_message = "Storage operation failed"
