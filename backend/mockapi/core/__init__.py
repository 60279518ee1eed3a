"""
Core module - Error taxonomy and token security.
"""
from mockapi.core.errors import (
    AuthError,
    ConflictError,
    ForbiddenError,
    MockAPIError,
    NotFoundError,
    PersistenceError,
    RecordNotFoundError,
    SchemaError,
    UnknownResourceError,
    ValidationError,
)
from mockapi.core.security import AuthGuard, can_modify

__all__ = [
    "AuthError",
    "ConflictError",
    "ForbiddenError",
    "MockAPIError",
    "NotFoundError",
    "PersistenceError",
    "RecordNotFoundError",
    "SchemaError",
    "UnknownResourceError",
    "ValidationError",
    "AuthGuard",
    "can_modify",
]
