"""Send, PO receipt and quotation → sales-order conversion.

Every transition here is one-way and idempotent: repeating a completed
transition returns the current state without touching anything. Violated
preconditions raise `InvalidTransition` naming the unmet condition.
"""

from datetime import datetime, timezone
import logging
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from app.models.eto.quotation_models import Quotation
from app.models.eto.sales_order_models import SalesOrder, SalesOrderItem
from app.models.enums.quotation_status import (
    QuotationStatus,
    CustomerDecision,
    RevisionAction,
    AWAITING_CUSTOMER_STATUSES,
)
from app.models.enums.sales_order_status import SalesOrderStatus
from app.models.enums.workflow_stage import WorkflowStage

from app.schemas.eto.quotation_schemas import (
    QuotationOut,
    CustomerResponse,
    PurchaseOrderIn,
    SalesOrderConversionIn,
    ConversionOut,
)

from app.core.exceptions import ValidationError, InvalidTransition, ConcurrencyConflict, AlreadyConverted
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity

from app.services.eto.quotation_service import (
    _get_quotation_with_items,
    _map_quotation,
    _append_revision,
    _touch,
)

logger = logging.getLogger(__name__)

# The customer has walked away; no PO is accepted and no sales order is raised.
CLOSED_QUOTATION_STATUSES = (QuotationStatus.rejected, QuotationStatus.expired)


def _placeholder_po(q: Quotation) -> str:
    return f"PO-PENDING-{q.quotation_number}"


# =====================================================
# SEND TO CUSTOMER
# =====================================================
async def send_to_customer(
    db: AsyncSession,
    quotation_id: int,
    actor: str,
    revision_notes: str | None = None,
) -> QuotationOut:
    q = await _get_quotation_with_items(db, quotation_id, for_update=True)

    if q.sent_to_customer:
        return _map_quotation(q)

    if not q.boq_generated:
        raise InvalidTransition("Generate the BOQ before sending the quotation", unmet="boq_generated")

    if QuotationStatus(q.status) != QuotationStatus.draft:
        raise InvalidTransition(
            f"Quotation in status {QuotationStatus(q.status).value} cannot be sent",
            unmet="status == draft",
        )

    _append_revision(q, RevisionAction.send, actor, q.total, revision_notes)

    q.status = QuotationStatus.sent
    q.sent_to_customer = True
    q.sent_at = datetime.now(timezone.utc)
    q.workflow_stage = WorkflowStage.customer_review
    _touch(q, actor)

    await emit_activity(db, actor=actor, code=ActivityCode.SEND_QUOTATION, target_name=q.quotation_number)
    await db.commit()

    logger.info("Quotation %s sent to customer as %s", q.quotation_number, q.revision)
    return _map_quotation(q)


# =====================================================
# CUSTOMER RESPONSE
# =====================================================
async def record_customer_response(
    db: AsyncSession,
    quotation_id: int,
    payload: CustomerResponse,
    actor: str,
) -> QuotationOut:
    q = await _get_quotation_with_items(db, quotation_id, for_update=True)

    if not q.sent_to_customer:
        raise InvalidTransition("Quotation has not been sent to the customer", unmet="sent_to_customer")

    target = QuotationStatus(payload.decision.value)
    current = QuotationStatus(q.status)

    if current == target:
        return _map_quotation(q)

    if current not in AWAITING_CUSTOMER_STATUSES:
        raise InvalidTransition(
            f"Quotation in status {current.value} is no longer awaiting the customer",
            unmet="status awaiting customer",
        )

    q.status = target
    if payload.notes:
        q.notes = f"{q.notes}\n{payload.notes}" if q.notes else payload.notes
    _touch(q, actor)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.CUSTOMER_RESPONSE,
        target_name=q.quotation_number,
        decision=payload.decision.value,
    )
    await db.commit()
    return _map_quotation(q)


# =====================================================
# PURCHASE ORDER
# =====================================================
async def mark_po_received(
    db: AsyncSession,
    quotation_id: int,
    payload: PurchaseOrderIn,
    actor: str,
) -> QuotationOut:
    po_number = (payload.po_number or "").strip()
    if not po_number:
        raise ValidationError("PO number is required", {"field": "po_number"})

    q = await _get_quotation_with_items(db, quotation_id, for_update=True)

    if q.po_received:
        return _map_quotation(q)

    if not q.sent_to_customer:
        raise InvalidTransition("Send the quotation to the customer first", unmet="sent_to_customer")

    if QuotationStatus(q.status) in CLOSED_QUOTATION_STATUSES:
        raise InvalidTransition(
            f"Quotation is {QuotationStatus(q.status).value}",
            unmet="status not rejected or expired",
        )

    # PO amount and date are informational; they are not checked against the total.
    q.po_received = True
    q.po_number = po_number
    q.po_amount = payload.po_amount
    q.po_date = payload.po_date
    q.workflow_stage = WorkflowStage.po_received
    _touch(q, actor)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.RECEIVE_PO,
        target_name=q.quotation_number,
        po_number=po_number,
    )
    await db.commit()
    return _map_quotation(q)


# =====================================================
# CONVERSION
# =====================================================
async def _create_sales_order(
    db: AsyncSession,
    q: Quotation,
    customer_po: str,
    actor: str,
) -> SalesOrder:
    so = SalesOrder(
        so_number=f"SO-TMP-{uuid4().hex[:12]}",
        quotation_id=q.id,
        customer_name=q.customer_name,
        customer_po=customer_po,
        payment_terms=q.payment_terms,
        delivery_terms=q.delivery_terms,
        subtotal=q.subtotal,
        tax=q.tax,
        total=q.total,
        status=SalesOrderStatus.confirmed,
        created_by=actor,
        updated_by=actor,
        items=[
            SalesOrderItem(
                position=i.position,
                description=i.description,
                unit=i.unit,
                category=i.category,
                quantity=i.quantity,
                unit_price=i.unit_price,
                total_price=i.total_price,
            )
            for i in q.items
        ],
    )
    db.add(so)
    await db.flush()

    so.so_number = f"SO-{so.id:06d}"
    return so


async def _claim_conversion(
    db: AsyncSession,
    quotation_id: int,
    expected_version: int,
    so_id: int,
    actor: str,
) -> None:
    """Compare-and-set the conversion flags onto the quotation.

    Raises `AlreadyConverted` if another caller converted it first and
    `ConcurrencyConflict` if it changed in some other way.
    """
    result = await db.execute(
        update(Quotation)
        .where(
            Quotation.id == quotation_id,
            Quotation.version == expected_version,
            Quotation.converted_to_so.is_(False),
            Quotation.is_deleted.is_(False),
        )
        .values(
            status=QuotationStatus.completed,
            converted_to_so=True,
            so_id=so_id,
            workflow_stage=WorkflowStage.completed,
            version=Quotation.version + 1,
            updated_by=actor,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(Quotation.id)
        .execution_options(synchronize_session=False)
    )
    if result.scalar_one_or_none() is not None:
        return

    current = (
        await db.execute(
            select(Quotation.converted_to_so, Quotation.so_id).where(Quotation.id == quotation_id)
        )
    ).one_or_none()

    if current is not None and current.converted_to_so:
        raise AlreadyConverted(quotation_id, current.so_id)
    raise ConcurrencyConflict("Quotation modified while converting; reload and retry")


async def _already_converted(db: AsyncSession, quotation_id: int, so_id: int | None = None) -> ConversionOut:
    q = await _get_quotation_with_items(db, quotation_id, refresh=True)
    if not q.converted_to_so:
        raise ConcurrencyConflict("Quotation modified while converting; reload and retry")
    return ConversionOut(
        quotation=_map_quotation(q),
        sales_order_id=so_id if so_id is not None else q.so_id,
        created=False,
    )


async def convert_to_sales_order(
    db: AsyncSession,
    quotation_id: int,
    payload: SalesOrderConversionIn,
    actor: str,
) -> ConversionOut:
    q = await _get_quotation_with_items(db, quotation_id)

    if q.converted_to_so:
        logger.info("Quotation %s already converted to sales order %s", q.quotation_number, q.so_id)
        return ConversionOut(quotation=_map_quotation(q), sales_order_id=q.so_id, created=False)

    if not q.po_received:
        raise InvalidTransition("Record the customer's purchase order first", unmet="po_received")

    if QuotationStatus(q.status) in CLOSED_QUOTATION_STATUSES:
        raise InvalidTransition(
            f"Quotation is {QuotationStatus(q.status).value}",
            unmet="status not rejected or expired",
        )

    customer_po = (payload.customer_po or "").strip() or q.po_number or _placeholder_po(q)
    quotation_number = q.quotation_number

    try:
        so = await _create_sales_order(db, q, customer_po, actor)
        await _claim_conversion(db, q.id, q.version, so.id, actor)
        await emit_activity(
            db,
            actor=actor,
            code=ActivityCode.CONVERT_QUOTATION_TO_SALES_ORDER,
            target_name=quotation_number,
            so_number=so.so_number,
        )
        await db.commit()
    except AlreadyConverted as exc:
        await db.rollback()
        logger.info("Lost conversion race on %s; sales order %s already exists", quotation_number, exc.so_id)
        return await _already_converted(db, quotation_id, exc.so_id)
    except IntegrityError:
        # sales_orders.quotation_id is unique: a competing insert got there first.
        await db.rollback()
        logger.warning("Sales order insert for %s hit a uniqueness conflict", quotation_number)
        return await _already_converted(db, quotation_id)
    except Exception:
        await db.rollback()
        raise

    so_id = so.id
    q = await _get_quotation_with_items(db, quotation_id, refresh=True)

    logger.info("Quotation %s converted to sales order %s", quotation_number, so.so_number)
    return ConversionOut(quotation=_map_quotation(q), sales_order_id=so_id, created=True)
