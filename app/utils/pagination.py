"""
Pagination Utilities

Offset pagination for the public content listings: repositories return a
``PageResult`` (the items of one page plus the total count) and routes wrap
it in a ``Page`` response carrying the page metadata.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PageResult:
    """One page of query results and the size of the whole result set"""

    items: list[Any] = field(default_factory=list)
    total_items: int = 0


class Page(BaseModel, Generic[T]):
    """Standard paginated response model"""

    items: list[T]
    total_items: int
    page: int
    per_page: int
    last_page: int

    @classmethod
    def build(cls, items: list[T], total_items: int, page: int, per_page: int) -> "Page[T]":
        last_page = max(1, math.ceil(total_items / per_page)) if per_page else 1
        return cls(items=items, total_items=total_items, page=page, per_page=per_page, last_page=last_page)


def page_offset(page: int, per_page: int) -> int:
    """Return the row offset of a 1-based page; pages below 1 count as 1."""
    return (max(page, 1) - 1) * per_page


async def get_total_count(db: AsyncSession, model, filters: list | None = None) -> int:
    """
    Get total count of rows matching filters.

    Args:
        db: Database session
        model: SQLAlchemy model class
        filters: Optional list of filter conditions

    Returns:
        Total count
    """
    query = select(func.count(model.id))

    if filters:
        for f in filters:
            query = query.where(f)

    result = await db.execute(query)
    return result.scalar() or 0


class PaginationParams:
    """
    FastAPI dependency for the ``page`` query parameter.

    Usage:
        @router.get("/items")
        async def list_items(pagination: PaginationParams = Depends()):
            ...
    """

    def __init__(self, page: int = Query(default=1, ge=1, description="1-based page number")):
        self.page = page
