from datetime import datetime, timezone
import logging
from uuid import uuid4
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, asc, desc

from app.models.eto.quotation_models import Quotation, QuotationItem, QuotationRevision
from app.models.enums.quotation_status import (
    QuotationStatus,
    EDITABLE_STATUSES,
    RevisionAction,
)

from app.schemas.eto.quotation_schemas import (
    QuotationCreate,
    QuotationUpdate,
    QuotationItemIn,
    QuotationOut,
    QuotationListData,
    QuotationListItem,
    EngineeringProjectAttach,
    StageOut,
    NextRevisionOut,
)

from app.core.config import TAX_RATE, DEFAULT_PAYMENT_TERMS
from app.core.exceptions import AppException, ValidationError, NotFoundError, InvalidTransition, ConcurrencyConflict
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity
from app.utils.decimal_utils import parse_decimal

from app.services.eto.cost_rollup_core import apply_quotation_totals
from app.services.eto.revision_core import next_revision, revision_kind_for_action, RevisionKind
from app.services.eto.workflow_stage_core import resolve_stage

logger = logging.getLogger(__name__)

INITIAL_REVISION = "1.0"

REVISION_REASONS = {
    RevisionAction.draft: "Draft revision",
    RevisionAction.update: "Quotation update",
    RevisionAction.send: "Updated and sent to customer",
}


# =====================================================
# LOADERS / MAPPERS
# =====================================================
async def _get_quotation_with_items(
    db: AsyncSession,
    quotation_id: int,
    *,
    for_update: bool = False,
    refresh: bool = False,
) -> Quotation:
    stmt = select(Quotation).where(
        Quotation.id == quotation_id,
        Quotation.is_deleted.is_(False),
    )
    if for_update:
        stmt = stmt.with_for_update()
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)

    result = await db.execute(stmt)
    q = result.scalar_one_or_none()
    if not q:
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)
    return q


def _map_quotation(q: Quotation) -> QuotationOut:
    return QuotationOut.model_validate(q)


def _check_version(q: Quotation, version: int) -> None:
    if q.version != version:
        raise ConcurrencyConflict("Version conflict", ErrorCode.VERSION_CONFLICT)


def _ensure_editable(q: Quotation) -> None:
    if q.converted_to_so:
        raise InvalidTransition(
            "Quotation already converted to a sales order",
            unmet="converted_to_so == false",
        )
    if QuotationStatus(q.status) not in EDITABLE_STATUSES:
        raise InvalidTransition(
            f"Quotation in status {QuotationStatus(q.status).value} cannot be edited",
            unmet="status is draft or awaiting customer",
        )


def validate_line_items(items: Iterable[QuotationItemIn]) -> None:
    """Reject negative quantities or prices before anything is mutated."""
    for index, item in enumerate(items):
        if parse_decimal(item.quantity) < 0:
            raise ValidationError("Quantity cannot be negative", {"item": index, "field": "quantity"})
        if parse_decimal(item.unit_price) < 0:
            raise ValidationError("Unit price cannot be negative", {"item": index, "field": "unit_price"})


def _build_items(items: Iterable[QuotationItemIn]) -> list[QuotationItem]:
    return [
        QuotationItem(
            position=position,
            description=i.description,
            unit=i.unit,
            category=i.category,
            quantity=i.quantity,
            unit_price=i.unit_price,
        )
        for position, i in enumerate(items, start=1)
    ]


def recalculate_totals(q: Quotation) -> None:
    apply_quotation_totals(q, TAX_RATE)


def _append_revision(
    q: Quotation,
    action: RevisionAction,
    actor: str,
    previous_total,
    notes: str | None = None,
) -> str:
    previous = q.revision
    q.revision = next_revision(previous, revision_kind_for_action(action))
    q.revisions.append(
        QuotationRevision(
            revision=q.revision,
            previous_revision=previous,
            action=action,
            reason=REVISION_REASONS[action],
            notes=notes,
            cost_impact=q.total - previous_total,
            changed_by=actor,
        )
    )
    return q.revision


def _touch(q: Quotation, actor: str) -> None:
    q.version += 1
    q.updated_by = actor
    q.updated_at = datetime.now(timezone.utc)


# =====================================================
# CREATE / READ
# =====================================================
async def create_quotation(
    db: AsyncSession,
    payload: QuotationCreate,
    actor: str,
) -> QuotationOut:
    validate_line_items(payload.items)

    q = Quotation(
        quotation_number=f"QUO-TMP-{uuid4().hex[:12]}",
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        title=payload.title,
        description=payload.description,
        notes=payload.notes,
        valid_until=payload.valid_until,
        payment_terms=payload.payment_terms or DEFAULT_PAYMENT_TERMS,
        delivery_terms=payload.delivery_terms,
        status=QuotationStatus.draft,
        revision=INITIAL_REVISION,
        engineering_drawing_created=False,
        boq_generated=False,
        sent_to_customer=False,
        po_received=False,
        converted_to_so=False,
        version=1,
        created_by=actor,
        updated_by=actor,
    )
    q.items = _build_items(payload.items)
    q.revisions = []
    recalculate_totals(q)

    db.add(q)
    await db.flush()

    q.quotation_number = f"QUO-{q.id:06d}"

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CREATE_QUOTATION,
        target_name=q.quotation_number,
    )
    await db.commit()

    logger.info("Quotation %s created with %d items", q.quotation_number, len(q.items))
    return _map_quotation(q)


async def get_quotation(db: AsyncSession, quotation_id: int) -> QuotationOut:
    q = await _get_quotation_with_items(db, quotation_id)
    return _map_quotation(q)


async def list_quotations(
    db: AsyncSession,
    status: str | None = None,
    converted: bool | None = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    order: str = "desc",
) -> QuotationListData:
    filters = [Quotation.is_deleted.is_(False)]
    if status:
        filters.append(Quotation.status == QuotationStatus(status))
    if converted is not None:
        filters.append(Quotation.converted_to_so.is_(converted))

    total = await db.scalar(select(func.count(Quotation.id)).where(*filters))

    sort_map = {
        "created_at": Quotation.created_at,
        "quotation_number": Quotation.quotation_number,
        "total": Quotation.total,
    }
    sort_col = sort_map.get(sort_by, Quotation.created_at)

    result = await db.execute(
        select(Quotation)
        .where(*filters)
        .order_by(asc(sort_col) if order == "asc" else desc(sort_col))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    items = [
        QuotationListItem(
            id=q.id,
            quotation_number=q.quotation_number,
            customer_name=q.customer_name,
            title=q.title,
            status=q.status,
            stage=resolve_stage(q),
            revision=q.revision,
            items_count=len(q.items),
            total=q.total,
            valid_until=q.valid_until,
            created_at=q.created_at,
        )
        for q in result.scalars().all()
    ]

    return QuotationListData(total=total or 0, items=items)


async def get_quotation_stage(db: AsyncSession, quotation_id: int) -> StageOut:
    q = await _get_quotation_with_items(db, quotation_id)
    return StageOut(
        quotation_id=q.id,
        stage=resolve_stage(q),
        stored=q.workflow_stage is not None,
    )


def preview_next_revision(current: str, kind: str) -> NextRevisionOut:
    try:
        kind = RevisionKind(kind)
    except ValueError:
        raise ValidationError("kind must be minor | major", {"kind": kind})
    return NextRevisionOut(current=current, kind=kind.value, next=next_revision(current, kind))


# =====================================================
# UPDATE
# =====================================================
async def update_quotation(
    db: AsyncSession,
    quotation_id: int,
    payload: QuotationUpdate,
    actor: str,
) -> QuotationOut:
    if payload.action == RevisionAction.send:
        raise ValidationError("Use the send endpoint to send a quotation", {"action": payload.action.value})
    if payload.items is not None:
        validate_line_items(payload.items)

    q = await _get_quotation_with_items(db, quotation_id, for_update=True)
    _ensure_editable(q)
    _check_version(q, payload.version)

    previous_total = q.total
    changes: list[str] = []

    for field in ("title", "description", "notes", "valid_until", "payment_terms", "delivery_terms"):
        value = getattr(payload, field)
        if value is not None and value != getattr(q, field):
            setattr(q, field, value)
            changes.append(field)

    if payload.items is not None:
        q.items = _build_items(payload.items)
        recalculate_totals(q)
        changes.append("items")

    if not changes and not payload.revision_notes:
        return _map_quotation(q)

    revision = _append_revision(q, payload.action, actor, previous_total, payload.revision_notes)
    _touch(q, actor)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.UPDATE_QUOTATION,
        target_name=q.quotation_number,
        revision=revision,
        changes=", ".join(changes) or "notes only",
    )
    await db.commit()

    return _map_quotation(q)


async def recompute_quotation_costs(
    db: AsyncSession,
    quotation_id: int,
    actor: str,
) -> QuotationOut:
    """Rebuild the rollup columns from the stored items."""
    q = await _get_quotation_with_items(db, quotation_id, for_update=True)

    before = (q.subtotal, q.tax, q.total)
    recalculate_totals(q)

    if (q.subtotal, q.tax, q.total) != before:
        logger.warning(
            "Quotation %s totals drifted from items: %s -> %s",
            q.quotation_number,
            before,
            (q.subtotal, q.tax, q.total),
        )
        q.updated_by = actor
        await db.commit()

    return _map_quotation(q)


async def attach_engineering_project(
    db: AsyncSession,
    quotation_id: int,
    payload: EngineeringProjectAttach,
    actor: str,
) -> QuotationOut:
    q = await _get_quotation_with_items(db, quotation_id, for_update=True)
    _ensure_editable(q)
    _check_version(q, payload.version)

    if q.engineering_project_id == payload.engineering_project_id:
        return _map_quotation(q)

    q.engineering_project_id = payload.engineering_project_id
    if not q.engineering_status:
        q.engineering_status = "In Progress"
    _touch(q, actor)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.ATTACH_ENGINEERING_PROJECT,
        target_name=q.quotation_number,
        project_ref=payload.engineering_project_id,
    )
    await db.commit()
    return _map_quotation(q)


async def delete_quotation(
    db: AsyncSession,
    quotation_id: int,
    version: int,
    actor: str,
) -> QuotationOut:
    q = await _get_quotation_with_items(db, quotation_id, for_update=True)

    if q.converted_to_so or q.status != QuotationStatus.draft:
        raise AppException(409, "Only draft quotations can be deleted", ErrorCode.QUOTATION_CANNOT_DELETE)

    _check_version(q, version)

    q.is_deleted = True
    _touch(q, actor)

    result = _map_quotation(q)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.DELETE_QUOTATION,
        target_name=q.quotation_number,
    )
    await db.commit()

    return result
