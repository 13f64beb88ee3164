# app/services/support/activity_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from app.models.support.activity_models import ActivityLog
from app.schemas.support.activity_schemas import (
    ActivityOut,
    ActivityFilters,
    ActivityListData,
)
from app.core.exceptions import ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

ALLOWED_SORT_FIELDS = {
    "created_at": ActivityLog.created_at,
    "actor": ActivityLog.actor,
}


async def list_activities(
    *,
    db: AsyncSession,
    filters: ActivityFilters,
) -> ActivityListData:
    # -------------------------
    # Filters
    # -------------------------
    conditions = []
    if filters.actor:
        conditions.append(ActivityLog.actor.ilike(f"%{filters.actor}%"))
    if filters.code:
        conditions.append(ActivityLog.code == filters.code.upper())

    query = select(ActivityLog).where(*conditions)
    count_query = select(func.count(ActivityLog.id)).where(*conditions)

    # -------------------------
    # Sorting (safe)
    # -------------------------
    sort_column = ALLOWED_SORT_FIELDS.get(filters.sort_by)
    if sort_column is None:
        raise ValidationError("Invalid sort field", {"sort_by": filters.sort_by})

    order_fn = desc if filters.sort_order == "desc" else asc
    query = query.order_by(order_fn(sort_column), order_fn(ActivityLog.id))

    # -------------------------
    # Pagination
    # -------------------------
    offset = (filters.page - 1) * filters.page_size
    query = query.limit(filters.page_size).offset(offset)

    total = await db.scalar(count_query)
    result = await db.execute(query)

    activities = result.scalars().all()

    logger.info(
        "Activities fetched",
        extra={
            "total": total,
            "page": filters.page,
            "page_size": filters.page_size,
        },
    )

    return ActivityListData(
        total=total or 0,
        items=[ActivityOut.model_validate(a) for a in activities],
    )
