"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser, LoginRequest, TokenResponse
from app.schemas.common import (
    ErrorResponse,
    NewItemResponse,
    PaginationParam,
    PaginationResult,
    StatusResponse,
)
from app.schemas.health import HealthResponse
from app.schemas.user import (
    UserCreate,
    UserOut,
    UserPageResponse,
    UserQueryParam,
    UserStatus,
    UserUpdate,
)

__all__ = [
    "CurrentUser",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "NewItemResponse",
    "PaginationParam",
    "PaginationResult",
    "StatusResponse",
    "TokenResponse",
    "UserCreate",
    "UserOut",
    "UserPageResponse",
    "UserQueryParam",
    "UserStatus",
    "UserUpdate",
]
