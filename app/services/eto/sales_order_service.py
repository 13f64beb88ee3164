from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from app.models.eto.sales_order_models import SalesOrder
from app.models.enums.sales_order_status import SalesOrderStatus
from app.schemas.eto.sales_order_schemas import SalesOrderOut, SalesOrderListData

from app.core.exceptions import NotFoundError
from app.constants.error_codes import ErrorCode


async def _get_sales_order(db: AsyncSession, sales_order_id: int) -> SalesOrder:
    result = await db.execute(select(SalesOrder).where(SalesOrder.id == sales_order_id))
    so = result.scalar_one_or_none()
    if not so:
        raise NotFoundError("Sales order not found", ErrorCode.SALES_ORDER_NOT_FOUND)
    return so


async def get_sales_order(db: AsyncSession, sales_order_id: int) -> SalesOrderOut:
    return SalesOrderOut.model_validate(await _get_sales_order(db, sales_order_id))


async def list_sales_orders(
    db: AsyncSession,
    status: SalesOrderStatus | None = None,
    quotation_id: int | None = None,
    page: int = 1,
    page_size: int = 20,
) -> SalesOrderListData:
    filters = []
    if status:
        filters.append(SalesOrder.status == status)
    if quotation_id is not None:
        filters.append(SalesOrder.quotation_id == quotation_id)

    total = await db.scalar(select(func.count(SalesOrder.id)).where(*filters))

    result = await db.execute(
        select(SalesOrder)
        .where(*filters)
        .order_by(desc(SalesOrder.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return SalesOrderListData(
        total=total or 0,
        items=[SalesOrderOut.model_validate(so) for so in result.scalars().all()],
    )
