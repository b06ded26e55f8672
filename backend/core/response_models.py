"""
Shared response models used across API modules.
"""

from typing import List, Tuple, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy.orm import Query

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Standard pagination metadata"""

    page: int = Field(description="Current page number (1-indexed)")
    limit: int = Field(description="Number of items per page")
    total: int = Field(description="Total number of items")
    pages: int = Field(description="Total number of pages")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=(total + limit - 1) // limit if limit else 0,
        )


class MessageResponse(BaseModel):
    """Plain acknowledgement body"""

    message: str


def paginate(query: Query, page: int, limit: int) -> Tuple[List, PaginationMeta]:
    """Apply offset/limit to a query and return the rows with their metadata."""
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, PaginationMeta.build(page, limit, total)
