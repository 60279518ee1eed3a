"""
Response envelopes for the resource endpoints.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field


class PaginationInfo(BaseModel):
    """Pagination block of a list response."""
    total: int = Field(..., description="Number of records matching the filters")
    current_page: int = Field(..., description="1-based page number")
    per_page: int = Field(..., description="Page size")
    total_pages: int = Field(..., description="ceil(total / per_page)")


class PaginatedResponse(BaseModel):
    """List endpoint response."""
    data: list[dict[str, Any]] = Field(..., description="Records in the requested window")
    pagination: PaginationInfo


class RecordResponse(BaseModel):
    """Create/update response."""
    data: dict[str, Any] = Field(..., description="Stored record")
    message: str = Field(..., description="Outcome message")


class ErrorResponse(BaseModel):
    """Error body rendered for every MockAPIError."""
    error: str = Field(..., description="Error summary")
    details: Optional[list[str]] = Field(None, description="One message per violation")
