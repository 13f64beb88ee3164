from datetime import datetime, timezone
import logging
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from app.models.production.work_order_models import ProductionWorkOrder, WorkOrderStep
from app.models.production.journey_models import ProductionJourney
from app.models.eto.sales_order_models import SalesOrder
from app.models.enums.production_status import WorkOrderStatus, WorkOrderStepStatus
from app.models.enums.sales_order_status import SalesOrderStatus

from app.schemas.production.production_schemas import (
    WorkOrderCreate,
    WorkOrderStatusUpdate,
    WorkOrderProgressUpdate,
    WorkOrderStepUpdate,
    WorkOrderOut,
    WorkOrderListData,
)

from app.core.exceptions import NotFoundError, InvalidTransition, ConcurrencyConflict
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity

from app.services.production.production_core import (
    advance_work_order,
    clamp_progress,
    DEFAULT_WORK_ORDER_STEPS,
)

logger = logging.getLogger(__name__)

# Work orders that no longer hold their sales order open.
CLOSED_WORK_ORDER_STATUSES = (WorkOrderStatus.quality_approved, WorkOrderStatus.cancelled)


# =====================================================
# LOADERS / MAPPERS
# =====================================================
async def _get_work_order(db: AsyncSession, work_order_id: int) -> ProductionWorkOrder:
    result = await db.execute(select(ProductionWorkOrder).where(ProductionWorkOrder.id == work_order_id))
    wo = result.scalar_one_or_none()
    if not wo:
        raise NotFoundError("Work order not found", ErrorCode.WORK_ORDER_NOT_FOUND)
    return wo


def _map_work_order(wo: ProductionWorkOrder) -> WorkOrderOut:
    return WorkOrderOut.model_validate(wo)


def _check_version(wo: ProductionWorkOrder, version: int) -> None:
    if wo.version != version:
        raise ConcurrencyConflict("Version conflict", ErrorCode.VERSION_CONFLICT)


def _touch(wo: ProductionWorkOrder, actor: str) -> None:
    wo.version += 1
    wo.updated_by = actor
    wo.updated_at = datetime.now(timezone.utc)


# =====================================================
# CREATE / READ
# =====================================================
async def create_work_order(db: AsyncSession, payload: WorkOrderCreate, actor: str) -> WorkOrderOut:
    so = (
        await db.execute(select(SalesOrder).where(SalesOrder.id == payload.sales_order_id))
    ).scalar_one_or_none()
    if not so:
        raise NotFoundError("Sales order not found", ErrorCode.SALES_ORDER_NOT_FOUND)

    if SalesOrderStatus(so.status) not in (SalesOrderStatus.confirmed, SalesOrderStatus.in_production):
        raise InvalidTransition(
            f"Sales order {so.so_number} is {SalesOrderStatus(so.status).value}",
            unmet="sales order confirmed or in production",
        )

    if payload.journey_id is not None:
        journey = await db.get(ProductionJourney, payload.journey_id)
        if not journey:
            raise NotFoundError("Journey not found", ErrorCode.JOURNEY_NOT_FOUND)

    step_names = payload.steps if payload.steps else DEFAULT_WORK_ORDER_STEPS

    wo = ProductionWorkOrder(
        work_order_number=f"WO-TMP-{uuid4().hex[:12]}",
        sales_order_id=so.id,
        journey_id=payload.journey_id,
        priority=payload.priority,
        status=WorkOrderStatus.planned,
        progress=0,
        due_date=payload.due_date,
        notes=payload.notes,
        version=1,
        created_by=actor,
        updated_by=actor,
    )
    wo.steps = [
        WorkOrderStep(position=position, name=name, status=WorkOrderStepStatus.pending)
        for position, name in enumerate(step_names, start=1)
    ]

    db.add(wo)
    await db.flush()

    wo.work_order_number = f"WO-{wo.id:06d}"

    if SalesOrderStatus(so.status) == SalesOrderStatus.confirmed:
        so.status = SalesOrderStatus.in_production
        so.updated_by = actor

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_WORK_ORDER,
        target_name=wo.work_order_number,
        so_number=so.so_number,
    )
    await db.commit()

    logger.info("Work order %s created for %s", wo.work_order_number, so.so_number)
    return _map_work_order(wo)


async def get_work_order(db: AsyncSession, work_order_id: int) -> WorkOrderOut:
    return _map_work_order(await _get_work_order(db, work_order_id))


async def list_work_orders(
    db: AsyncSession,
    sales_order_id: int | None = None,
    journey_id: int | None = None,
    status: WorkOrderStatus | None = None,
    page: int = 1,
    page_size: int = 20,
) -> WorkOrderListData:
    filters = []
    if sales_order_id is not None:
        filters.append(ProductionWorkOrder.sales_order_id == sales_order_id)
    if journey_id is not None:
        filters.append(ProductionWorkOrder.journey_id == journey_id)
    if status:
        filters.append(ProductionWorkOrder.status == status)

    total = await db.scalar(select(func.count(ProductionWorkOrder.id)).where(*filters))

    result = await db.execute(
        select(ProductionWorkOrder)
        .where(*filters)
        .order_by(desc(ProductionWorkOrder.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return WorkOrderListData(
        total=total or 0,
        items=[_map_work_order(wo) for wo in result.scalars().all()],
    )


# =====================================================
# STATUS / PROGRESS
# =====================================================
async def _complete_sales_order_if_done(db: AsyncSession, wo: ProductionWorkOrder, actor: str) -> None:
    open_count = await db.scalar(
        select(func.count(ProductionWorkOrder.id)).where(
            ProductionWorkOrder.sales_order_id == wo.sales_order_id,
            ProductionWorkOrder.id != wo.id,
            ProductionWorkOrder.status.not_in(CLOSED_WORK_ORDER_STATUSES),
        )
    )
    if open_count:
        return

    so = await db.get(SalesOrder, wo.sales_order_id)
    if so and SalesOrderStatus(so.status) == SalesOrderStatus.in_production:
        so.status = SalesOrderStatus.completed
        so.updated_by = actor
        logger.info("Sales order %s completed after quality approval of %s", so.so_number, wo.work_order_number)


async def advance_work_order_status(
    db: AsyncSession,
    work_order_id: int,
    payload: WorkOrderStatusUpdate,
    actor: str,
) -> WorkOrderOut:
    wo = await _get_work_order(db, work_order_id)
    _check_version(wo, payload.version)

    if WorkOrderStatus(wo.status) == payload.status:
        return _map_work_order(wo)

    try:
        previous = advance_work_order(wo, payload.status)
    except InvalidTransition:
        logger.warning(
            "Refused work order %s transition %s -> %s",
            wo.work_order_number,
            WorkOrderStatus(wo.status).value,
            payload.status.value,
        )
        raise
    _touch(wo, actor)

    if payload.status == WorkOrderStatus.quality_approved:
        await _complete_sales_order_if_done(db, wo, actor)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.UPDATE_WORK_ORDER_STATUS,
        target_name=wo.work_order_number,
        from_status=previous.value,
        to_status=payload.status.value,
    )
    await db.commit()
    return _map_work_order(wo)


async def set_work_order_progress(
    db: AsyncSession,
    work_order_id: int,
    payload: WorkOrderProgressUpdate,
    actor: str,
) -> WorkOrderOut:
    wo = await _get_work_order(db, work_order_id)
    _check_version(wo, payload.version)

    progress = clamp_progress(payload.progress)
    if progress == wo.progress:
        return _map_work_order(wo)

    wo.progress = progress
    _touch(wo, actor)
    await db.commit()
    return _map_work_order(wo)


async def update_work_order_step(
    db: AsyncSession,
    work_order_id: int,
    step_id: int,
    payload: WorkOrderStepUpdate,
    actor: str,
) -> WorkOrderOut:
    wo = await _get_work_order(db, work_order_id)

    step = next((s for s in wo.steps if s.id == step_id), None)
    if not step:
        raise NotFoundError("Work order step not found", ErrorCode.WORK_ORDER_STEP_NOT_FOUND)

    step.status = payload.status
    if payload.assigned_worker is not None:
        step.assigned_worker = payload.assigned_worker
    _touch(wo, actor)

    await db.commit()
    return _map_work_order(wo)
