"""
Envelope schemas for the public JSON API: {"data": ...} payloads,
paginated listings and the error body.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Pagination metadata."""

    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, le=100, description="Items per page")
    total: int = Field(..., ge=0, description="Total items across all pages")
    totalPages: int = Field(..., ge=0, description="Total number of pages")


class PaginatedResponse(BaseModel, Generic[T]):
    """Listing page: {"data": [...], "pagination": {...}}."""

    data: List[T]
    pagination: PaginationMeta


class DataResponse(BaseModel, Generic[T]):
    """Single-payload response wrapper."""

    data: T


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
