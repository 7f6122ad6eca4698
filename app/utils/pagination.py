# app/utils/pagination.py
import math
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Query

from app.domain.errors import ValidationError

MAX_PAGE_SIZE = 100


def check_page(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("page must be >= 1", field="page")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")


def page_meta(total: int, page: int, limit: int, total_key: str) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit)
    return {
        "current_page": page,
        "limit": limit,
        "total_pages": total_pages,
        total_key: total,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }


def paginate(query: Query, page: int, limit: int, total_key: str) -> Tuple[List[Any], Dict[str, Any]]:
    """
    Runs a count + offset/limit pair over the same filtered query.
    `query` must already carry its ordering.
    """
    check_page(page, limit)

    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()

    return items, page_meta(total, page, limit, total_key)
