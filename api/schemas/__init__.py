"""Pydantic schemas for API request and response validation."""

from api.schemas.common import DataResponse, ErrorResponse, PaginatedResponse, PaginationMeta
from api.schemas.tmdb import ImportRequest
from api.schemas.user import (
    LoginRequest,
    LoginResponse,
    LoginUser,
    MeResponse,
    UserCreatedResponse,
    UserCreateRequest,
)

__all__ = [
    "DataResponse",
    "ErrorResponse",
    "PaginatedResponse",
    "PaginationMeta",
    "ImportRequest",
    "LoginRequest",
    "LoginResponse",
    "LoginUser",
    "MeResponse",
    "UserCreatedResponse",
    "UserCreateRequest",
]
