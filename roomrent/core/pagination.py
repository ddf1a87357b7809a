from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.schemas.common import Pagination


async def paginate(
    db: AsyncSession,
    stmt: Select,
    page: int,
    limit: int,
    *options: Any,
) -> tuple[list[Any], Pagination]:
    """Run ``stmt`` for one page and count the full result set.

    Loader ``options`` are applied to the page query only.
    """
    total = await db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
    result = await db.execute(
        stmt.options(*options).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars().all()), Pagination.build(page, limit, total or 0)
