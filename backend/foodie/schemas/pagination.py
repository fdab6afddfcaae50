"""Pagination schemas and utilities."""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    items: List[T]
    total: int = Field(description="Total number of items matching the query")
    skip: int = Field(description="Number of items skipped")
    limit: int = Field(description="Maximum items requested")
    has_more: bool = Field(description="Whether more items are available")

    @classmethod
    def create(
        cls,
        items: List[T],
        total: int,
        skip: int,
        limit: int,
    ) -> "PaginatedResponse[T]":
        return cls(
            items=items,
            total=total,
            skip=skip,
            limit=limit,
            has_more=(skip + len(items)) < total,
        )


def paginate_select(db: Session, stmt: Select, skip: int = 0, limit: int = 20):
    """
    Run a SELECT with offset/limit applied.

    Returns:
        Tuple of (page of ORM objects, total count before paging)
    """
    total = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    items = list(db.scalars(stmt.offset(skip).limit(limit)).all())
    return items, total
