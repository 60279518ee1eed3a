"""
Response schemas for API endpoints.
"""
from mockapi.schemas.responses import (
    ErrorResponse,
    PaginatedResponse,
    PaginationInfo,
    RecordResponse,
)

__all__ = [
    "ErrorResponse",
    "PaginatedResponse",
    "PaginationInfo",
    "RecordResponse",
]
