from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapped around every API response."""

    success: bool
    message: str
    data: T | None = None


class PageResponse(BaseModel, Generic[T]):
    content: list[T]
    page: int
    size: int
    total_elements: int
    total_pages: int


def ok(message: str, data: Any = None) -> dict:
    return {"success": True, "message": message, "data": data}


def fail(message: str, data: Any = None) -> dict:
    return {"success": False, "message": message, "data": data}


def page_of(page, schema: type[BaseModel]) -> PageResponse:
    """Convert a repository ``Page`` into the wire shape using ``schema`` for each item."""
    return PageResponse[schema](
        content=[schema.model_validate(item) for item in page.items],
        page=page.page,
        size=page.size,
        total_elements=page.total_elements,
        total_pages=page.total_pages,
    )
