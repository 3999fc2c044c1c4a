import math
from typing import Any, Dict, List, Sequence, Tuple


def order_expenses(items: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Newest date first; records sharing a date keep insertion order (created_at, then id)."""
    by_insertion = sorted(items, key=lambda i: (i.get("created_at", ""), i["expense_id"]))
    return sorted(by_insertion, key=lambda i: i["date"], reverse=True)


def paginate(items: Sequence[Any], page: int, limit: int) -> Tuple[List[Any], Dict[str, int]]:
    """Slice one page out of items and compute the pagination meta."""
    total_items = len(items)
    total_pages = math.ceil(total_items / limit) if total_items else 0
    start = (page - 1) * limit
    page_items = list(items[start:start + limit])
    meta = {
        "total_items": total_items,
        "total_pages": total_pages,
        "current_page": page,
        "limit": limit,
    }
    return page_items, meta
