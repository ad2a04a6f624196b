"""JWT login and auth dependencies (get_current_user, get_request_context, get_user_service)."""

from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.context import RequestContext
from app.core.database import get_db
from app.core.errors import NotFoundError
from app.core.security import create_access_token, decode_access_token
from app.repositories.user_repository import UserRepository
from app.schemas.auth import CurrentUser, LoginRequest, TokenResponse
from app.schemas.user import UserStatus
from app.services.user_service import UserService

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_user_service(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserService:
    """Dependency: a UserService bound to this request's DB session."""
    return UserService(UserRepository(db), max_page_size=settings.PAGE_SIZE_MAX)


@router.post("", response_model=TokenResponse)
def login(
    body: LoginRequest,
    service: Annotated[UserService, Depends(get_user_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """
    Authenticate with user name and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    Disabled users are refused with 403.
    """
    ctx = RequestContext(timeout=settings.REQUEST_TIMEOUT_SEC)
    user = service.authenticate(ctx, body.user_name, body.password)
    token = create_access_token(record_id=user.record_id, user_name=user.user_name)
    return TokenResponse(access_token=token, token_type="bearer")


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    service: Annotated[UserService, Depends(get_user_service)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser:
    """
    Dependency: require a valid Bearer JWT for a live, enabled user. Raises 401 otherwise.
    With AUTH_ENABLED=false a synthetic root caller is returned instead.
    """
    if not settings.AUTH_ENABLED:
        return CurrentUser(record_id=settings.ROOT_USER_NAME, user_name=settings.ROOT_USER_NAME)
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        record_id = decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise _unauthorized("Invalid or expired token")

    try:
        user = service.get(RequestContext(timeout=settings.REQUEST_TIMEOUT_SEC), record_id)
    except NotFoundError:
        raise _unauthorized("User not found")
    if user.status != UserStatus.ENABLED:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is disabled")
    return CurrentUser.model_validate(user)


def get_request_context(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RequestContext:
    """Dependency: per-request context with the caller and a deadline from REQUEST_TIMEOUT_SEC."""
    return RequestContext(caller=current_user, timeout=settings.REQUEST_TIMEOUT_SEC)
