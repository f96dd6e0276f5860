import math
from typing import List, Sequence, TypeVar

T = TypeVar("T")


def paginate(items: Sequence[T], page: int, page_size: int) -> dict:
    """Slice an already filtered list; the page number is clamped into range."""
    total = len(items)
    total_pages = math.ceil(total / page_size) if page_size > 0 else 0
    page = max(1, min(page, total_pages if total_pages > 0 else 1))
    start = (page - 1) * page_size
    rows: List[T] = list(items[start:start + page_size])
    return {
        "items": rows,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
    }
