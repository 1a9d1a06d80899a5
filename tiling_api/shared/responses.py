"""Response envelopes shared by every router"""

import math
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class PagedResponse(BaseModel, Generic[T]):
    """Page of results; page is 0-based"""

    items: list[T]
    page: int
    limit: int
    total: int
    totalPages: int

    @classmethod
    def build(cls, items: list[Any], page: int, limit: int, total: int) -> "PagedResponse":
        return cls(
            items=items,
            page=page,
            limit=limit,
            total=total,
            totalPages=math.ceil(total / limit) if limit else 0,
        )


class UserInfo(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    locale: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> Optional["UserInfo"]:
        if user is None:
            return None
        return cls(
            id=str(user.id),
            email=user.email,
            name=user.name,
            picture=user.picture_url,
            locale=user.locale,
            role=user.role,
        )


def clamp_page(page: int, limit: int, max_limit: int = 100) -> tuple[int, int]:
    """Clamp paging query params: page >= 0, 1 <= limit <= max_limit"""
    return max(page, 0), max(1, min(limit, max_limit))
