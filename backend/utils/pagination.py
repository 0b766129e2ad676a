import math
from typing import Any, List, Tuple

from sqlalchemy.orm import Query

DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


def paginate(query: Query, page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> Tuple[List[Any], dict]:
    """Apply offset/limit to ``query`` and return the rows with the Pagination block."""
    page = max(page, 1)
    per_page = min(max(per_page, 1), MAX_PER_PAGE)

    total = query.order_by(None).count()
    items = query.offset((page - 1) * per_page).limit(per_page).all()
    return items, {
        "current_page": page,
        "last_page": max(math.ceil(total / per_page), 1),
        "per_page": per_page,
        "total": total,
    }
