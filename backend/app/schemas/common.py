from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Snake-case attributes on the Python side, camelCase on the wire"""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class APIResponse(BaseModel, Generic[DataT]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[DataT] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    has_next_page: bool
    has_prev_page: bool
    limit: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = (total + limit - 1) // limit if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
            limit=limit,
        )


class CountBucket(BaseModel):
    """One row of a grouped count, e.g. brands per platform"""
    id: Optional[str] = None
    count: int


def bucket_counts(values: List[Any], limit: Optional[int] = None) -> List[CountBucket]:
    counts = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        ordered = ordered[:limit]
    return [CountBucket(id=key, count=count) for key, count in ordered]
