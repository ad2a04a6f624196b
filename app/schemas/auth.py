"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Credentials for login."""

    user_name: str = Field(..., min_length=1, max_length=64, description="User name")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class CurrentUser(BaseModel):
    """Authenticated caller, injected into routes and carried by the request context."""

    record_id: str
    user_name: str
    role_id: str | None = None

    model_config = ConfigDict(from_attributes=True)
