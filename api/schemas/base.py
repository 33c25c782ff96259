"""Base Pydantic schemas with camelCase JSON."""

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from humps import camelize


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    return camelize(string)


class CamelModel(BaseModel):
    """
    Base model that reads snake_case attributes and writes camelCase JSON.

    Usage:
        class SubmissionResponse(CamelModel):
            auto_approved: bool   # JSON: autoApproved
            status_display: str   # JSON: statusDisplay
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


T = TypeVar("T")


class PaginationMeta(CamelModel):
    """Pagination metadata."""

    page: int
    per_page: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "PaginationMeta":
        return cls(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=math.ceil(total / per_page) if total else 0,
        )


class PaginatedResponse(CamelModel, Generic[T]):
    """Page of items plus pagination metadata."""

    data: list[T]
    meta: PaginationMeta


class ErrorDetail(CamelModel):
    """Error detail for API error responses."""

    code: str
    message: str
    details: dict[str, Any] = {}


class ErrorResponse(CamelModel):
    """Error envelope written by the exception handlers."""

    error: ErrorDetail
