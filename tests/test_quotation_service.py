from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaError
from sqlalchemy import select

from app.core.exceptions import ValidationError, ConcurrencyConflict, InvalidTransition, AppException
from app.constants.error_codes import ErrorCode
from app.models.enums.quotation_status import QuotationStatus, QuotationItemCategory, RevisionAction
from app.models.enums.workflow_stage import WorkflowStage
from app.models.support.activity_models import ActivityLog
from app.schemas.eto.quotation_schemas import QuotationItemIn, QuotationUpdate, EngineeringProjectAttach
from app.services.eto.quotation_service import (
    get_quotation,
    list_quotations,
    update_quotation,
    delete_quotation,
    attach_engineering_project,
    get_quotation_stage,
    preview_next_revision,
    recompute_quotation_costs,
    validate_line_items,
)


class TestCreateQuotation:
    @pytest.mark.asyncio
    async def test_totals_from_items(self, new_quotation):
        q = await new_quotation()

        assert q.quotation_number == f"QUO-{q.id:06d}"
        assert q.status == QuotationStatus.draft
        assert q.revision == "1.0"
        assert q.payment_terms == "Net 30"
        assert q.material_cost == Decimal("100.00")
        assert q.labor_cost == Decimal("200.00")
        assert q.subtotal == Decimal("300.00")
        assert q.tax == Decimal("25.50")
        assert q.total == Decimal("325.50")
        assert [i.total_price for i in q.items] == [Decimal("100.00"), Decimal("200.00")]
        assert q.stage == WorkflowStage.draft

    @pytest.mark.asyncio
    async def test_empty_quotation(self, new_quotation):
        q = await new_quotation(items=[])
        assert q.subtotal == q.tax == q.total == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_activity_logged(self, db, new_quotation):
        q = await new_quotation()
        row = (await db.execute(select(ActivityLog))).scalars().one()
        assert row.actor == "alice"
        assert row.code == "CREATE_QUOTATION"
        assert q.quotation_number in row.message

    def test_negative_quantity_rejected_before_mutation(self):
        bad = QuotationItemIn.model_construct(
            description="x",
            unit=None,
            category=QuotationItemCategory.material,
            quantity=Decimal("-1"),
            unit_price=Decimal("5"),
        )
        with pytest.raises(ValidationError) as exc:
            validate_line_items([bad])
        assert exc.value.details == {"item": 0, "field": "quantity"}

    def test_schema_rejects_negative_price(self):
        with pytest.raises(SchemaError):
            QuotationItemIn(description="x", quantity=1, unit_price=-3)


class TestUpdateQuotation:
    @pytest.mark.asyncio
    async def test_draft_save_is_minor_revision(self, db, new_quotation):
        q = await new_quotation()

        updated = await update_quotation(
            db,
            q.id,
            QuotationUpdate(
                version=q.version,
                items=[QuotationItemIn(description="Tank shell", quantity=3, unit_price=50)],
                revision_notes="Customer wants three",
            ),
            "alice",
        )

        assert updated.revision == "1.1"
        assert updated.version == q.version + 1
        assert updated.subtotal == Decimal("150.00")
        assert updated.labor_cost == Decimal("0.00")
        assert updated.total == Decimal("162.75")

        history = updated.revisions[-1]
        assert history.previous_revision == "1.0"
        assert history.action == RevisionAction.draft
        assert history.notes == "Customer wants three"
        assert history.cost_impact == Decimal("162.75") - Decimal("325.50")

    @pytest.mark.asyncio
    async def test_update_action_is_major_revision(self, db, new_quotation):
        q = await new_quotation()
        updated = await update_quotation(
            db, q.id, QuotationUpdate(version=q.version, action="update", title="Bigger tank"), "alice"
        )
        assert updated.revision == "2.0"
        assert updated.title == "Bigger tank"
        assert updated.revisions[-1].cost_impact == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_no_changes_is_noop(self, db, new_quotation):
        q = await new_quotation()
        same = await update_quotation(db, q.id, QuotationUpdate(version=q.version, title=q.title), "alice")
        assert same.revision == "1.0"
        assert same.version == q.version

    @pytest.mark.asyncio
    async def test_stale_version(self, db, new_quotation):
        q = await new_quotation()
        with pytest.raises(ConcurrencyConflict) as exc:
            await update_quotation(db, q.id, QuotationUpdate(version=q.version + 5, title="x"), "alice")
        assert exc.value.error_code == ErrorCode.VERSION_CONFLICT

    @pytest.mark.asyncio
    async def test_send_action_must_use_send_operation(self, db, new_quotation):
        q = await new_quotation()
        with pytest.raises(ValidationError):
            await update_quotation(db, q.id, QuotationUpdate(version=q.version, action="send"), "alice")

    @pytest.mark.asyncio
    async def test_converted_quotation_is_frozen(self, db, quotation_with_po):
        from app.schemas.eto.quotation_schemas import SalesOrderConversionIn
        from app.services.eto.order_conversion_service import convert_to_sales_order

        q = await quotation_with_po()
        result = await convert_to_sales_order(db, q.id, SalesOrderConversionIn(), "alice")

        with pytest.raises(InvalidTransition):
            await update_quotation(
                db, q.id, QuotationUpdate(version=result.quotation.version, title="late edit"), "alice"
            )


class TestReadAndStage:
    @pytest.mark.asyncio
    async def test_list_filters(self, db, new_quotation):
        first = await new_quotation()
        await new_quotation(title="Second")

        data = await list_quotations(db)
        assert data.total == 2

        data = await list_quotations(db, status=QuotationStatus.sent)
        assert data.total == 0

        data = await list_quotations(db, sort_by="quotation_number", order="asc")
        assert data.items[0].id == first.id
        assert data.items[0].items_count == 2

    @pytest.mark.asyncio
    async def test_missing_quotation(self, db):
        with pytest.raises(AppException) as exc:
            await get_quotation(db, 404)
        assert exc.value.error_code == ErrorCode.QUOTATION_NOT_FOUND

    @pytest.mark.asyncio
    async def test_engineering_project_moves_stage(self, db, new_quotation):
        q = await new_quotation()
        updated = await attach_engineering_project(
            db, q.id, EngineeringProjectAttach(engineering_project_id="ENG-42", version=q.version), "alice"
        )
        assert updated.stage == WorkflowStage.engineering
        assert updated.workflow_stage is None

        stage = await get_quotation_stage(db, q.id)
        assert stage.stage == WorkflowStage.engineering
        assert stage.stored is False

    def test_preview_next_revision(self):
        assert preview_next_revision("Rev A", "major").next == "Rev B"
        with pytest.raises(ValidationError):
            preview_next_revision("1.0", "huge")

    @pytest.mark.asyncio
    async def test_recompute_is_stable(self, db, new_quotation):
        q = await new_quotation()
        again = await recompute_quotation_costs(db, q.id, "alice")
        assert again.total == q.total


class TestDeleteQuotation:
    @pytest.mark.asyncio
    async def test_soft_delete_draft(self, db, new_quotation):
        q = await new_quotation()
        await delete_quotation(db, q.id, q.version, "alice")

        with pytest.raises(AppException) as exc:
            await get_quotation(db, q.id)
        assert exc.value.status_code == 404
        assert (await list_quotations(db)).total == 0

    @pytest.mark.asyncio
    async def test_sent_quotation_cannot_be_deleted(self, db, quotation_with_boq):
        from app.services.eto.order_conversion_service import send_to_customer

        q, _ = await quotation_with_boq()
        sent = await send_to_customer(db, q.id, "alice")

        with pytest.raises(AppException) as exc:
            await delete_quotation(db, q.id, sent.version, "alice")
        assert exc.value.error_code == ErrorCode.QUOTATION_CANNOT_DELETE
