"""
Reusable query builder functions to reduce code duplication across services.
"""
from typing import List, Tuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func


async def get_paginated_results(
    db: AsyncSession,
    query,
    skip: int = 0,
    limit: int = 100,
    order_by=None,
) -> Tuple[List, int]:
    """
    Execute a paginated query and return results with total count.

    Args:
        db: Database session
        query: SQLAlchemy select query
        skip: Number of records to skip
        limit: Maximum number of records to return
        order_by: Column(s) to order by (optional)

    Returns:
        Tuple of (results_list, total_count)
    """
    count_query = select(func.count()).select_from(query.subquery())
    count_result = await db.execute(count_query)
    total = count_result.scalar() or 0

    if order_by is not None:
        if isinstance(order_by, (list, tuple)):
            query = query.order_by(*order_by)
        else:
            query = query.order_by(order_by)

    result = await db.execute(query.offset(skip).limit(limit))
    items = result.scalars().all()

    return list(items), total


def page_to_offset(page: int, page_size: int) -> Tuple[int, int]:
    """Convert 1-based page/page_size into (skip, limit)."""
    page = max(page, 1)
    return (page - 1) * page_size, page_size


def not_deleted(query, model):
    """Exclude soft-deleted rows."""
    return query.where(model.deleted_at.is_(None))


def filter_equals(query, model, filters: Optional[dict] = None):
    """Add ``column == value`` filters, skipping None values."""
    for column_name, value in (filters or {}).items():
        if value is not None:
            query = query.where(getattr(model, column_name) == value)
    return query


def filter_contains(query, model, filters: Optional[dict] = None):
    """Add ``column LIKE %value%`` filters, skipping empty values."""
    for column_name, value in (filters or {}).items():
        if value:
            query = query.where(getattr(model, column_name).like(f"%{value}%"))
    return query
