"""Offset pagination shared by the list endpoints."""

from __future__ import annotations

import math

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def paginate(query, *, page: int, limit: int) -> dict:
    """Return `{items, total, page, limit, total_pages}` for a SQLAlchemy query."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
