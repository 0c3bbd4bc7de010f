"""
Base schema and the response envelope shared by every endpoint.
"""

from __future__ import annotations

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

__all__ = [
    "BaseSchema",
    "PaginationMeta",
    "SuccessResponse",
    "ErrorResponse",
]


class BaseSchema(BaseModel):
    """Common Pydantic configuration for request and response schemas."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class PaginationMeta(BaseSchema):
    page: int
    limit: int
    total: int
    pages: int


class SuccessResponse(BaseSchema, Generic[T]):
    """Standard success envelope."""

    success: bool = Field(default=True)
    message: Optional[str] = Field(default=None)
    data: Optional[T] = Field(default=None)
    pagination: Optional[PaginationMeta] = Field(default=None)

    @classmethod
    def create(
        cls,
        message: Optional[str] = None,
        data: Any = None,
        pagination: Optional[Dict[str, Any]] = None,
    ) -> "SuccessResponse":
        return cls(
            success=True,
            message=message,
            data=data,
            pagination=PaginationMeta(**pagination) if pagination else None,
        )


class ErrorResponse(BaseSchema):
    """Standard error envelope."""

    success: bool = Field(default=False)
    message: str
    error: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
