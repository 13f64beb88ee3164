from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.response import success_response, APIResponse
from app.models.enums.sales_order_status import SalesOrderStatus

from app.schemas.eto.sales_order_schemas import SalesOrderOut, SalesOrderListData
from app.services.eto.sales_order_service import get_sales_order, list_sales_orders

router = APIRouter(
    prefix="/sales-orders",
    tags=["Sales Orders"],
)


@router.get("", response_model=APIResponse[SalesOrderListData])
async def list_sales_orders_api(
    db: AsyncSession = Depends(get_db),
    status: SalesOrderStatus | None = Query(None),
    quotation_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    data = await list_sales_orders(
        db=db,
        status=status,
        quotation_id=quotation_id,
        page=page,
        page_size=page_size,
    )
    return success_response(
        "Sales orders retrieved successfully",
        data,
    )


@router.get("/{sales_order_id}", response_model=APIResponse[SalesOrderOut])
async def get_sales_order_api(
    sales_order_id: int,
    db: AsyncSession = Depends(get_db),
):
    return success_response(
        "Sales order retrieved successfully",
        await get_sales_order(db, sales_order_id),
    )
