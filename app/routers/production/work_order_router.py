from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_actor import get_actor
from app.utils.response import success_response, APIResponse
from app.models.enums.production_status import WorkOrderStatus

from app.schemas.production.production_schemas import (
    WorkOrderCreate,
    WorkOrderStatusUpdate,
    WorkOrderProgressUpdate,
    WorkOrderStepUpdate,
    WorkOrderOut,
    WorkOrderListData,
)

from app.services.production.work_order_service import (
    create_work_order,
    get_work_order,
    list_work_orders,
    advance_work_order_status,
    set_work_order_progress,
    update_work_order_step,
)

router = APIRouter(
    prefix="/work-orders",
    tags=["Production Work Orders"],
)


@router.post("", response_model=APIResponse[WorkOrderOut])
async def create_work_order_api(
    payload: WorkOrderCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Work order created successfully",
        await create_work_order(db, payload, actor),
    )


@router.get("", response_model=APIResponse[WorkOrderListData])
async def list_work_orders_api(
    db: AsyncSession = Depends(get_db),
    sales_order_id: int | None = Query(None),
    journey_id: int | None = Query(None),
    status: WorkOrderStatus | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    data = await list_work_orders(
        db=db,
        sales_order_id=sales_order_id,
        journey_id=journey_id,
        status=status,
        page=page,
        page_size=page_size,
    )
    return success_response(
        "Work orders retrieved successfully",
        data,
    )


@router.get("/{work_order_id}", response_model=APIResponse[WorkOrderOut])
async def get_work_order_api(
    work_order_id: int,
    db: AsyncSession = Depends(get_db),
):
    return success_response(
        "Work order retrieved successfully",
        await get_work_order(db, work_order_id),
    )


@router.patch("/{work_order_id}/status", response_model=APIResponse[WorkOrderOut])
async def advance_work_order_status_api(
    work_order_id: int,
    payload: WorkOrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Work order status updated",
        await advance_work_order_status(db, work_order_id, payload, actor),
    )


@router.patch("/{work_order_id}/progress", response_model=APIResponse[WorkOrderOut])
async def set_work_order_progress_api(
    work_order_id: int,
    payload: WorkOrderProgressUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Work order progress updated",
        await set_work_order_progress(db, work_order_id, payload, actor),
    )


@router.patch("/{work_order_id}/steps/{step_id}", response_model=APIResponse[WorkOrderOut])
async def update_work_order_step_api(
    work_order_id: int,
    step_id: int,
    payload: WorkOrderStepUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Work order step updated",
        await update_work_order_step(db, work_order_id, step_id, payload, actor),
    )
