"""
Response Envelopes

Success bodies are {"data": ...}; list bodies add total/page/pageSize.
"""
from typing import Generic, List, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    data: T


class PageResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")

    class Config:
        populate_by_name = True


class Deleted(BaseModel):
    deleted: bool = True


def paginate(query, pagination) -> dict:
    """Run query for one page. The caller applies filters and ordering."""
    total = query.count()
    items = query.offset(pagination.offset).limit(pagination.page_size).all()
    return {
        "data": items,
        "total": total,
        "page": pagination.page,
        "pageSize": pagination.page_size,
    }


def deleted() -> dict:
    return {"data": {"deleted": True}}
