from datetime import datetime, timezone
import logging
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.models.eto.boq_models import Boq, BoqItem
from app.models.eto.quotation_models import Quotation

from app.schemas.eto.boq_schemas import (
    BoqCreate,
    BoqItemCreate,
    BoqItemUpdate,
    BoqOut,
    EtoStatusUpdate,
)

from app.core.exceptions import AppException, NotFoundError, InvalidTransition, ConcurrencyConflict
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity

from app.services.eto.cost_rollup_core import apply_boq_totals
from app.services.eto.workflow_stage_core import apply_eto_status, ETO_PROGRESS
from app.models.enums.boq_status import EtoStatus

logger = logging.getLogger(__name__)


# =====================================================
# LOADERS / MAPPERS
# =====================================================
async def _get_boq_with_items(db: AsyncSession, boq_id: int) -> Boq:
    result = await db.execute(select(Boq).where(Boq.id == boq_id))
    boq = result.scalar_one_or_none()
    if not boq:
        raise NotFoundError("BOQ not found", ErrorCode.BOQ_NOT_FOUND)
    return boq


def _map_boq(boq: Boq) -> BoqOut:
    return BoqOut.model_validate(boq)


def _check_version(boq: Boq, version: int) -> None:
    if boq.version != version:
        raise ConcurrencyConflict("Version conflict", ErrorCode.VERSION_CONFLICT)


def _find_item(boq: Boq, item_id: int) -> BoqItem:
    for item in boq.items:
        if item.id == item_id:
            return item
    raise NotFoundError("BOQ item not found", ErrorCode.BOQ_ITEM_NOT_FOUND)


def _new_item(position: int, payload: BoqItemCreate) -> BoqItem:
    return BoqItem(
        position=position,
        description=payload.description,
        unit=payload.unit,
        category=payload.category,
        quantity=payload.quantity,
        unit_rate=payload.unit_rate,
        remarks=payload.remarks,
    )


def _touch(boq: Boq, actor: str) -> None:
    boq.version += 1
    boq.updated_by = actor
    boq.updated_at = datetime.now(timezone.utc)


async def _commit_items_change(db: AsyncSession, boq: Boq, actor: str, changes: str) -> BoqOut:
    apply_boq_totals(boq)
    _touch(boq, actor)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.UPDATE_BOQ_ITEMS,
        target_name=boq.boq_number,
        changes=changes,
    )
    await db.commit()
    return _map_boq(boq)


# =====================================================
# CREATE / READ
# =====================================================
async def create_boq(db: AsyncSession, payload: BoqCreate, actor: str) -> BoqOut:
    q = (
        await db.execute(
            select(Quotation).where(
                Quotation.id == payload.quotation_id,
                Quotation.is_deleted.is_(False),
            )
        )
    ).scalar_one_or_none()
    if not q:
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)

    if q.boq_generated:
        raise AppException(409, "BOQ already exists for this quotation", ErrorCode.BOQ_ALREADY_EXISTS)
    if q.converted_to_so:
        raise InvalidTransition("Quotation already converted to a sales order", unmet="converted_to_so == false")

    boq = Boq(
        boq_number=f"BOQ-TMP-{uuid4().hex[:12]}",
        quotation_id=q.id,
        notes=payload.notes,
        version=1,
        created_by=actor,
        updated_by=actor,
    )
    boq.items = [_new_item(position, i) for position, i in enumerate(payload.items, start=1)]
    apply_boq_totals(boq)
    apply_eto_status(boq, EtoStatus.boq_submitted)

    db.add(boq)
    await db.flush()

    boq.boq_number = f"BOQ-{boq.id:06d}"

    q.boq_generated = True
    q.boq_id = boq.id
    q.version += 1
    q.updated_by = actor
    q.updated_at = datetime.now(timezone.utc)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_BOQ,
        target_name=boq.boq_number,
        quotation_number=q.quotation_number,
    )
    await db.commit()

    logger.info("BOQ %s created for %s, total %s", boq.boq_number, q.quotation_number, boq.total_cost)
    return _map_boq(boq)


async def get_boq(db: AsyncSession, boq_id: int) -> BoqOut:
    return _map_boq(await _get_boq_with_items(db, boq_id))


# =====================================================
# ITEMS
# =====================================================
async def add_boq_item(
    db: AsyncSession,
    boq_id: int,
    payload: BoqItemCreate,
    version: int,
    actor: str,
) -> BoqOut:
    boq = await _get_boq_with_items(db, boq_id)
    _check_version(boq, version)

    position = max((i.position for i in boq.items), default=0) + 1
    boq.items.append(_new_item(position, payload))

    return await _commit_items_change(db, boq, actor, f"added '{payload.description}'")


async def update_boq_item(
    db: AsyncSession,
    boq_id: int,
    item_id: int,
    payload: BoqItemUpdate,
    actor: str,
) -> BoqOut:
    boq = await _get_boq_with_items(db, boq_id)
    _check_version(boq, payload.version)
    item = _find_item(boq, item_id)

    data = payload.model_dump(exclude_unset=True, exclude={"version"})
    changed = [field for field, value in data.items() if value is not None and value != getattr(item, field)]
    if not changed:
        return _map_boq(boq)

    for field in changed:
        setattr(item, field, data[field])

    return await _commit_items_change(db, boq, actor, f"updated item {item_id} ({', '.join(changed)})")


async def remove_boq_item(
    db: AsyncSession,
    boq_id: int,
    item_id: int,
    version: int,
    actor: str,
) -> BoqOut:
    boq = await _get_boq_with_items(db, boq_id)
    _check_version(boq, version)
    item = _find_item(boq, item_id)

    boq.items.remove(item)

    return await _commit_items_change(db, boq, actor, f"removed item {item_id}")


async def recompute_boq_costs(db: AsyncSession, boq_id: int, actor: str) -> BoqOut:
    """Rebuild the category rollups from the stored items."""
    boq = await _get_boq_with_items(db, boq_id)

    before = boq.total_cost
    apply_boq_totals(boq)

    if boq.total_cost != before:
        logger.warning("BOQ %s total drifted from items: %s -> %s", boq.boq_number, before, boq.total_cost)
        boq.updated_by = actor
        await db.commit()

    return _map_boq(boq)


# =====================================================
# ETO STATUS
# =====================================================
async def set_eto_status(
    db: AsyncSession,
    boq_id: int,
    payload: EtoStatusUpdate,
    actor: str,
) -> BoqOut:
    boq = await _get_boq_with_items(db, boq_id)
    _check_version(boq, payload.version)

    if EtoStatus(boq.eto_status) == payload.eto_status:
        return _map_boq(boq)

    try:
        progress = apply_eto_status(boq, payload.eto_status)
    except InvalidTransition:
        logger.warning(
            "Refused ETO status %s on BOQ %s at %s%%",
            payload.eto_status.value,
            boq.boq_number,
            ETO_PROGRESS[EtoStatus(boq.eto_status)],
        )
        raise
    _touch(boq, actor)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.UPDATE_ETO_STATUS,
        target_name=boq.boq_number,
        eto_status=payload.eto_status.value,
        progress=progress,
    )
    await db.commit()
    return _map_boq(boq)
