from datetime import datetime, timezone
import logging
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc

from app.models.production.journey_models import ProductionJourney, JourneyStep
from app.models.enums.production_status import JourneyStatus, JourneyStepStatus, WorkOrderStatus

from app.schemas.production.production_schemas import (
    JourneyCreate,
    JourneyResourcesUpdate,
    JourneyStatusUpdate,
    JourneyStepUpdate,
    JourneyStepOut,
    JourneyOut,
    JourneyListData,
)

from app.core.exceptions import NotFoundError, InvalidTransition, ConcurrencyConflict
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity

from app.services.production.production_core import (
    advance_journey,
    aggregate_progress,
    resolve_step_status,
    setup_step_status,
    SETUP_STEP,
    DEFAULT_JOURNEY_STEPS,
)

logger = logging.getLogger(__name__)

FINISHED_WORK_ORDER_STATUSES = (WorkOrderStatus.completed, WorkOrderStatus.quality_approved)


# =====================================================
# LOADERS / MAPPERS
# =====================================================
async def _get_journey(db: AsyncSession, journey_id: int) -> ProductionJourney:
    # Work orders link themselves to a journey from the other side, so the
    # collection is reloaded rather than trusted from the identity map.
    result = await db.execute(
        select(ProductionJourney)
        .where(ProductionJourney.id == journey_id)
        .execution_options(populate_existing=True)
    )
    journey = result.scalar_one_or_none()
    if not journey:
        raise NotFoundError("Journey not found", ErrorCode.JOURNEY_NOT_FOUND)
    return journey


def _map_journey(j: ProductionJourney) -> JourneyOut:
    workstations = list(j.workstation_ids or [])
    operators = list(j.operator_ids or [])
    work_orders = list(j.work_orders or [])

    return JourneyOut(
        id=j.id,
        journey_number=j.journey_number,
        name=j.name,
        description=j.description,
        priority=j.priority,
        status=j.status,
        progress=aggregate_progress(wo.progress for wo in work_orders),
        workstation_ids=workstations,
        operator_ids=operators,
        start_date=j.start_date,
        end_date=j.end_date,
        total_work_orders=len(work_orders),
        completed_work_orders=sum(
            1 for wo in work_orders if WorkOrderStatus(wo.status) in FINISHED_WORK_ORDER_STATUSES
        ),
        version=j.version,
        created_at=j.created_at,
        updated_at=j.updated_at,
        steps=[
            JourneyStepOut(
                id=s.id,
                position=s.position,
                name=s.name,
                description=s.description,
                status=resolve_step_status(s, workstations, operators),
            )
            for s in j.steps
        ],
    )


def _check_version(j: ProductionJourney, version: int) -> None:
    if j.version != version:
        raise ConcurrencyConflict("Version conflict", ErrorCode.VERSION_CONFLICT)


def _touch(j: ProductionJourney, actor: str) -> None:
    j.version += 1
    j.updated_by = actor
    j.updated_at = datetime.now(timezone.utc)


def _sync_setup_step(j: ProductionJourney) -> None:
    for step in j.steps:
        if step.name == SETUP_STEP:
            step.status = setup_step_status(j.workstation_ids, j.operator_ids)


# =====================================================
# CREATE / READ
# =====================================================
async def create_journey(db: AsyncSession, payload: JourneyCreate, actor: str) -> JourneyOut:
    journey = ProductionJourney(
        journey_number=f"J-TMP-{uuid4().hex[:12]}",
        name=payload.name,
        description=payload.description,
        priority=payload.priority,
        status=JourneyStatus.planned,
        workstation_ids=list(payload.workstation_ids),
        operator_ids=list(payload.operator_ids),
        start_date=payload.start_date,
        end_date=payload.end_date,
        version=1,
        created_by=actor,
        updated_by=actor,
    )
    journey.steps = [
        JourneyStep(position=position, name=name, description=description, status=JourneyStepStatus.pending)
        for position, (name, description) in enumerate(DEFAULT_JOURNEY_STEPS, start=1)
    ]
    journey.work_orders = []
    _sync_setup_step(journey)

    db.add(journey)
    await db.flush()

    journey.journey_number = f"J-{journey.id:06d}"

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_JOURNEY,
        target_name=journey.journey_number,
    )
    await db.commit()

    logger.info("Production journey %s created", journey.journey_number)
    return _map_journey(journey)


async def get_journey(db: AsyncSession, journey_id: int) -> JourneyOut:
    return _map_journey(await _get_journey(db, journey_id))


async def list_journeys(
    db: AsyncSession,
    status: JourneyStatus | None = None,
    page: int = 1,
    page_size: int = 20,
) -> JourneyListData:
    filters = []
    if status:
        filters.append(ProductionJourney.status == status)

    total = await db.scalar(select(func.count(ProductionJourney.id)).where(*filters))

    result = await db.execute(
        select(ProductionJourney)
        .where(*filters)
        .order_by(desc(ProductionJourney.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )

    return JourneyListData(
        total=total or 0,
        items=[_map_journey(j) for j in result.scalars().all()],
    )


# =====================================================
# RESOURCES / STEPS / STATUS
# =====================================================
async def assign_resources(
    db: AsyncSession,
    journey_id: int,
    payload: JourneyResourcesUpdate,
    actor: str,
) -> JourneyOut:
    journey = await _get_journey(db, journey_id)
    _check_version(journey, payload.version)

    # JSON columns are not mutation-tracked; assign fresh lists.
    if payload.workstation_ids is not None:
        journey.workstation_ids = list(payload.workstation_ids)
    if payload.operator_ids is not None:
        journey.operator_ids = list(payload.operator_ids)
    _sync_setup_step(journey)
    _touch(journey, actor)

    await db.commit()
    return _map_journey(journey)


async def update_journey_step(
    db: AsyncSession,
    journey_id: int,
    step_id: int,
    payload: JourneyStepUpdate,
    actor: str,
) -> JourneyOut:
    journey = await _get_journey(db, journey_id)

    step = next((s for s in journey.steps if s.id == step_id), None)
    if not step:
        raise NotFoundError("Journey step not found", ErrorCode.JOURNEY_STEP_NOT_FOUND)

    if step.name == SETUP_STEP:
        raise InvalidTransition(
            "Setup completes when a workstation and an operator are assigned",
            unmet="assign workstations and operators",
        )

    step.status = payload.status
    _touch(journey, actor)

    await db.commit()
    return _map_journey(journey)


async def set_journey_status(
    db: AsyncSession,
    journey_id: int,
    payload: JourneyStatusUpdate,
    actor: str,
) -> JourneyOut:
    journey = await _get_journey(db, journey_id)
    _check_version(journey, payload.version)

    if JourneyStatus(journey.status) == payload.status:
        return _map_journey(journey)

    try:
        previous = advance_journey(journey, payload.status)
    except InvalidTransition:
        logger.warning(
            "Refused journey %s transition %s -> %s",
            journey.journey_number,
            JourneyStatus(journey.status).value,
            payload.status.value,
        )
        raise
    _touch(journey, actor)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.UPDATE_JOURNEY_STATUS,
        target_name=journey.journey_number,
        from_status=previous.value,
        to_status=payload.status.value,
    )
    await db.commit()
    return _map_journey(journey)
