"""Shared response shapes: pagination window, OK status, new-record id, error body."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PaginationParam(BaseModel):
    """Requested page window (current is 1-based). Bounds are enforced by the service."""

    model_config = ConfigDict(populate_by_name=True)

    current: int = Field(default=1, description="1-based page index")
    page_size: int = Field(default=10, alias="pageSize", description="Page length")

    @property
    def offset(self) -> int:
        return (self.current - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


class PaginationResult(BaseModel):
    """Pagination metadata returned alongside a page of items."""

    model_config = ConfigDict(populate_by_name=True)

    current: int
    page_size: int = Field(..., alias="pageSize")
    total: int


class StatusResponse(BaseModel):
    """Body returned by write endpoints that have nothing else to report."""

    status: Literal["OK"] = "OK"


class NewItemResponse(BaseModel):
    record_id: str = Field(..., description="Server-assigned record id")


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Error kind, e.g. not_found or invalid_argument")
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail
