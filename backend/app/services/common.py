from typing import List, Tuple

from sqlalchemy.orm import Query

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.common import is_valid_id
from app.schemas.common import Pagination


def ensure_valid_id(value, label: str = "ID") -> str:
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {label} format")
    return value


def page_params(page: int = 1, limit: int = None) -> Tuple[int, int]:
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else settings.DEFAULT_PAGE_SIZE
    return page, limit


def paginate(query: Query, page: int, limit: int) -> Tuple[List, Pagination]:
    """Apply offset/limit to an already ordered query"""
    page, limit = page_params(page, limit)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, Pagination.build(page, limit, total)


def parse_bool(value) -> bool:
    """Query-string flags arrive as "true"/"false" strings"""
    if isinstance(value, bool):
        return value
    return str(value).lower() == "true"
