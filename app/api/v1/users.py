"""User management endpoints: paged query, get, create, update, delete, batch delete, enable, disable."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.v1.auth import get_request_context, get_user_service
from app.core.config import Settings, get_settings
from app.core.context import RequestContext
from app.core.errors import InvalidArgumentError
from app.schemas.common import (
    ErrorResponse,
    NewItemResponse,
    PaginationParam,
    PaginationResult,
    StatusResponse,
)
from app.schemas.user import (
    UserCreate,
    UserOut,
    UserPageResponse,
    UserQueryParam,
    UserStatus,
    UserUpdate,
)
from app.services.user_service import UserService

router = APIRouter(
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

Ctx = Annotated[RequestContext, Depends(get_request_context)]
Service = Annotated[UserService, Depends(get_user_service)]


@router.get("", response_model=UserPageResponse)
def query_users(
    ctx: Ctx,
    service: Service,
    settings: Annotated[Settings, Depends(get_settings)],
    q: str | None = Query(default=None, description="Query type; only 'page' is supported"),
    current: int = Query(default=1, description="1-based page index"),
    page_size: int | None = Query(default=None, alias="pageSize", description="Page length"),
    user_name: str | None = Query(default=None, description="User name (substring match)"),
    real_name: str | None = Query(default=None, description="Real name (substring match)"),
    role_id: str | None = Query(default=None, description="Role ID (exact match)"),
    status: int | None = Query(default=None, description="Status (1: enabled, 2: disabled)"),
) -> UserPageResponse:
    """
    Query users. With q=page returns {list, pagination: {current, pageSize, total}}.
    Any other query type is rejected with 400.
    """
    if q != "page":
        raise InvalidArgumentError("Unknown query type.")

    params = UserQueryParam(
        user_name=user_name or None,
        real_name=real_name or None,
        role_id=role_id or None,
        status=status or None,
    )
    pagination = PaginationParam(
        current=current,
        page_size=page_size if page_size is not None else settings.PAGE_SIZE_DEFAULT,
    )
    items, total = service.query_page(ctx, params, pagination)
    return UserPageResponse(
        items=[UserOut.model_validate(u) for u in items],
        pagination=PaginationResult(
            current=pagination.current,
            page_size=pagination.page_size,
            total=total,
        ),
    )


@router.get("/{record_id}", response_model=UserOut, responses={404: {"model": ErrorResponse}})
def get_user(record_id: str, ctx: Ctx, service: Service) -> UserOut:
    return UserOut.model_validate(service.get(ctx, record_id))


@router.post("", response_model=NewItemResponse)
def create_user(body: UserCreate, ctx: Ctx, service: Service) -> NewItemResponse:
    """Create a user; returns the server-assigned record_id."""
    user = service.create(ctx, body)
    return NewItemResponse(record_id=user.record_id)


@router.put(
    "/{record_id}",
    response_model=StatusResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def update_user(record_id: str, body: UserUpdate, ctx: Ctx, service: Service) -> StatusResponse:
    service.update(ctx, record_id, body)
    return StatusResponse()


@router.delete("/{record_id}", response_model=StatusResponse, responses={404: {"model": ErrorResponse}})
def delete_user(record_id: str, ctx: Ctx, service: Service) -> StatusResponse:
    service.delete(ctx, record_id)
    return StatusResponse()


@router.delete("", response_model=StatusResponse, responses={404: {"model": ErrorResponse}})
def delete_users(
    ctx: Ctx,
    service: Service,
    batch: str = Query(default="", description="Record IDs separated by commas"),
) -> StatusResponse:
    """
    Delete several users in the given order. Stops at the first failure;
    users deleted before it stay deleted.
    """
    record_ids = [part.strip() for part in batch.split(",") if part.strip()]
    service.delete_many(ctx, record_ids)
    return StatusResponse()


@router.patch("/{record_id}/enable", response_model=StatusResponse, responses={404: {"model": ErrorResponse}})
def enable_user(record_id: str, ctx: Ctx, service: Service) -> StatusResponse:
    service.update_status(ctx, record_id, UserStatus.ENABLED)
    return StatusResponse()


@router.patch("/{record_id}/disable", response_model=StatusResponse, responses={404: {"model": ErrorResponse}})
def disable_user(record_id: str, ctx: Ctx, service: Service) -> StatusResponse:
    service.update_status(ctx, record_id, UserStatus.DISABLED)
    return StatusResponse()
