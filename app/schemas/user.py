"""Pydantic schemas for the user resource: filters, create/update payloads, responses."""

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field

from app.core.security import PASSWORD_MAX_LEN, REAL_NAME_MAX_LEN, USER_NAME_MAX_LEN
from app.schemas.common import PaginationResult


class UserStatus(IntEnum):
    """Account status. Changes only through enable/disable."""

    ENABLED = 1
    DISABLED = 2


class UserQueryParam(BaseModel):
    """
    Filters for the paginated user listing. All set fields are AND-combined.

    user_name and real_name match substrings (case-insensitive); role_id and status
    match exactly. status None (or 0 from the query string) means any status.
    """

    user_name: str | None = None
    real_name: str | None = None
    role_id: str | None = None
    status: int | None = None


class UserCreate(BaseModel):
    """Body for POST /users. record_id is assigned by the server."""

    user_name: str = Field(..., max_length=USER_NAME_MAX_LEN, description="Unique login name")
    real_name: str = Field(default="", max_length=REAL_NAME_MAX_LEN)
    password: str = Field(..., max_length=PASSWORD_MAX_LEN)
    role_id: str | None = Field(default=None, max_length=36)
    status: UserStatus | None = Field(
        default=None,
        description="Initial status; defaults to enabled.",
    )


class UserUpdate(BaseModel):
    """
    Body for PUT /users/{id}.

    Carries no record_id or status: record ids are immutable and status only changes
    through enable/disable. Unknown fields in the request body are ignored.
    An empty or missing password leaves the stored password unchanged.
    """

    user_name: str = Field(..., max_length=USER_NAME_MAX_LEN)
    real_name: str = Field(default="", max_length=REAL_NAME_MAX_LEN)
    password: str | None = Field(default=None, max_length=PASSWORD_MAX_LEN)
    role_id: str | None = Field(default=None, max_length=36)


class UserOut(BaseModel):
    """User as returned by the API (never includes the password hash)."""

    model_config = ConfigDict(from_attributes=True)

    record_id: str
    user_name: str
    real_name: str
    role_id: str | None
    status: UserStatus
    creator: str | None = None
    created_at: datetime
    updated_at: datetime


class UserPageResponse(BaseModel):
    """Response for GET /users?q=page: {list, pagination}."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[UserOut] = Field(..., alias="list")
    pagination: PaginationResult
