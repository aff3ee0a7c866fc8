from typing import Callable, Optional
from sqlalchemy.orm import Query
import math

MAX_PER_PAGE = 100

def paginate(query: Query, page: int = 1, per_page: int = 15, serializer: Optional[Callable] = None) -> dict:
    """Slice an ORM query into one page of results"""
    page = max(page, 1)
    per_page = min(max(per_page, 1), MAX_PER_PAGE)

    total = query.order_by(None).count()
    rows = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [serializer(row) for row in rows] if serializer else rows,
        "total": total,
        "page": page,
        "per_page": per_page,
        "last_page": max(math.ceil(total / per_page), 1),
    }
