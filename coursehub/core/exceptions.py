# coursehub/core/exceptions.py
"""Custom exceptions for the CourseHub application."""
from typing import Any, Optional


class CourseHubException(Exception):
    """Base exception carrying an HTTP status and a machine-readable kind."""
    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "type": self.kind}


class NotFoundError(CourseHubException):
    """Course, chat room or other resource is missing."""
    kind = "NotFound"
    status_code = 404

    def __init__(self, resource: str, id: Any = None):
        message = f"{resource} not found"
        if id is not None:
            message += f" with id: {id}"
        super().__init__(message)


class UnauthorizedError(CourseHubException):
    """Missing or invalid access token."""
    kind = "Unauthorized"
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class NotParticipantError(UnauthorizedError):
    """Authenticated user is neither the tutor nor enrolled in the course."""
    status_code = 403

    def __init__(self, message: str = "Not a participant of this course"):
        super().__init__(message)


class ConflictError(CourseHubException):
    """Concurrent writer already created the row."""
    kind = "Conflict"
    status_code = 409


class StorageError(CourseHubException):
    """Persistence layer failure. Never carries driver details to clients."""
    kind = "StorageError"
    status_code = 500

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message)


class ValidationError(CourseHubException):
    """Exception raised for validation errors."""
    kind = "ValidationError"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        detail = super().to_dict()
        if self.field:
            detail["field"] = self.field
        return detail
