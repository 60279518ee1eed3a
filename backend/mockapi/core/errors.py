"""
Error taxonomy shared by the store, the validator and the HTTP layer.
"""
from typing import Optional

from fastapi import status


class MockAPIError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[list[str]] = None):
        self.message = message or self.message
        self.details = details or []
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body: dict = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(MockAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class UnknownResourceError(NotFoundError):
    message = "Resource not found"


class RecordNotFoundError(NotFoundError):
    message = "Not found"


class ValidationError(MockAPIError):
    """Payload violated its Model Schema; carries every issue found."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation error"

    def __init__(self, issues: list, message: Optional[str] = None):
        self.issues = list(issues)
        super().__init__(message, [issue.message for issue in self.issues])


class ForbiddenError(MockAPIError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Permission denied"


class AuthError(MockAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Could not validate credentials"


class ConflictError(MockAPIError):
    status_code = status.HTTP_409_CONFLICT
    message = "Conflict"


class PersistenceError(MockAPIError):
    """Snapshot could not be read or written."""

    message = "Failed to persist data"


class SchemaError(Exception):
    """Invalid Model Schema declarations or seed data (startup only)."""
