"""Response envelope shared by every endpoint."""

from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Uniform envelope: ``{success, data?, message?, errors?}``."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    errors: Optional[List[Any]] = None


class MessageResponse(ApiResponse[None]):
    """Envelope without a payload."""


class Page(BaseModel, Generic[T]):
    """Paginated collection."""
    items: List[T]
    total: int
    page: int
    limit: int
    pages: int


def envelope(data: Any = None, message: Optional[str] = None) -> dict:
    """Build a success envelope for a route to return."""
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body
