"""
Pagination Utility Module

Standard page/page_size handling for list endpoints.
"""
from typing import Any, Callable, List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

MAX_PAGE_SIZE = 100


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: int = 20,
    serializer: Optional[Callable[[Any], Any]] = None,
) -> dict:
    """
    Apply pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Base query (ordering included)
        page: Page number (1-indexed)
        page_size: Items per page, capped at MAX_PAGE_SIZE
        serializer: Optional callable applied to each row

    Returns:
        Dictionary with items, total, page, page_size, total_pages, has_next, has_previous
    """
    page = max(1, page)
    page_size = max(1, min(MAX_PAGE_SIZE, page_size))
    offset = (page - 1) * page_size

    count_stmt = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    result = await db.execute(query.offset(offset).limit(page_size))
    items = result.scalars().all()
    if serializer is not None:
        items = [serializer(item) for item in items]

    return create_paginated_response(list(items), total, page, page_size)


def create_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    page_size: int
) -> dict:
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1
    }
