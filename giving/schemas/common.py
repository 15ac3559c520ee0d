"""Response envelope shared by every endpoint."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class PageInfo(BaseModel):
    current: int
    pages: int
    total: int


class ApiResponse(BaseModel, Generic[T]):
    """
    Standard envelope.

    ``{success, data?, message?, errors?}``; list endpoints add ``pagination``.
    """
    success: bool = True
    data: T | None = None
    message: str | None = None
    errors: list[dict[str, Any]] | None = None
    pagination: PageInfo | None = None
