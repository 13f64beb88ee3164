from decimal import Decimal

import pytest

from app.core.exceptions import AppException, ConcurrencyConflict, InvalidTransition, NotFoundError
from app.constants.error_codes import ErrorCode
from app.models.enums.boq_status import BoqCategory, EtoStatus
from app.models.enums.workflow_stage import WorkflowStage
from app.schemas.eto.boq_schemas import BoqCreate, BoqItemCreate, BoqItemUpdate, EtoStatusUpdate
from app.services.eto.boq_service import (
    create_boq,
    get_boq,
    add_boq_item,
    update_boq_item,
    remove_boq_item,
    recompute_boq_costs,
    set_eto_status,
)
from app.services.eto.quotation_service import get_quotation


def assert_rollup_consistent(boq):
    assert boq.total_cost == (
        boq.material_cost + boq.labor_cost + boq.equipment_cost + boq.subcontract_cost + boq.other_cost
    )
    assert boq.total_cost == sum((i.total_amount for i in boq.items), Decimal("0"))


class TestCreateBoq:
    @pytest.mark.asyncio
    async def test_marks_quotation(self, db, new_quotation):
        q = await new_quotation()
        boq = await create_boq(
            db,
            BoqCreate(
                quotation_id=q.id,
                items=[BoqItemCreate(description="Plate", category=BoqCategory.material, quantity=2, unit_rate=50)],
            ),
            "bob",
        )

        assert boq.boq_number == f"BOQ-{boq.id:06d}"
        assert boq.material_cost == Decimal("100.00")
        assert boq.total_cost == Decimal("100.00")
        assert boq.eto_status == EtoStatus.boq_submitted
        assert boq.engineering_progress == 0

        refreshed = await get_quotation(db, q.id)
        assert refreshed.boq_generated is True
        assert refreshed.boq_id == boq.id
        assert refreshed.stage == WorkflowStage.ready_to_send

    @pytest.mark.asyncio
    async def test_one_boq_per_quotation(self, db, new_quotation):
        q = await new_quotation()
        await create_boq(db, BoqCreate(quotation_id=q.id), "bob")

        with pytest.raises(AppException) as exc:
            await create_boq(db, BoqCreate(quotation_id=q.id), "bob")
        assert exc.value.error_code == ErrorCode.BOQ_ALREADY_EXISTS
        assert exc.value.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_quotation(self, db):
        with pytest.raises(NotFoundError):
            await create_boq(db, BoqCreate(quotation_id=999), "bob")


class TestBoqItems:
    @pytest.mark.asyncio
    async def test_rollup_after_add_edit_remove(self, db, quotation_with_boq):
        _, boq = await quotation_with_boq()

        boq = await add_boq_item(
            db,
            boq.id,
            BoqItemCreate(description="Crane hire", category=BoqCategory.equipment, quantity=1, unit_rate="350.00"),
            boq.version,
            "bob",
        )
        assert boq.equipment_cost == Decimal("350.00")
        assert boq.total_cost == Decimal("450.00")
        assert [i.position for i in boq.items] == [1, 2]
        assert_rollup_consistent(boq)

        crane = boq.items[1]
        boq = await update_boq_item(
            db, boq.id, crane.id, BoqItemUpdate(quantity=2, version=boq.version), "bob"
        )
        assert boq.items[1].total_amount == Decimal("700.00")
        assert boq.equipment_cost == Decimal("700.00")
        assert boq.total_cost == Decimal("800.00")
        assert_rollup_consistent(boq)

        boq = await update_boq_item(
            db, boq.id, crane.id, BoqItemUpdate(category=BoqCategory.subcontract, version=boq.version), "bob"
        )
        assert boq.equipment_cost == Decimal("0.00")
        assert boq.subcontract_cost == Decimal("700.00")

        boq = await remove_boq_item(db, boq.id, crane.id, boq.version, "bob")
        assert len(boq.items) == 1
        assert boq.total_cost == Decimal("100.00")
        assert_rollup_consistent(boq)

        stored = await get_boq(db, boq.id)
        assert stored.total_cost == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_each_change_bumps_version(self, db, quotation_with_boq):
        _, boq = await quotation_with_boq()
        updated = await add_boq_item(
            db, boq.id, BoqItemCreate(description="Bolts", quantity=100, unit_rate="0.25"), boq.version, "bob"
        )
        assert updated.version == boq.version + 1

        with pytest.raises(ConcurrencyConflict):
            await add_boq_item(
                db, boq.id, BoqItemCreate(description="Nuts", quantity=1, unit_rate=1), boq.version, "bob"
            )

    @pytest.mark.asyncio
    async def test_missing_item(self, db, quotation_with_boq):
        _, boq = await quotation_with_boq()
        with pytest.raises(NotFoundError) as exc:
            await remove_boq_item(db, boq.id, 12345, boq.version, "bob")
        assert exc.value.error_code == ErrorCode.BOQ_ITEM_NOT_FOUND

    @pytest.mark.asyncio
    async def test_recompute_keeps_totals(self, db, quotation_with_boq):
        _, boq = await quotation_with_boq()
        again = await recompute_boq_costs(db, boq.id, "bob")
        assert again.total_cost == boq.total_cost
        assert again.version == boq.version


class TestEtoStatus:
    @pytest.mark.asyncio
    async def test_progress_follows_status(self, db, quotation_with_boq):
        _, boq = await quotation_with_boq()

        boq = await set_eto_status(db, boq.id, EtoStatusUpdate(eto_status="engineering_design", version=boq.version), "bob")
        assert boq.engineering_progress == 50

        boq = await set_eto_status(db, boq.id, EtoStatusUpdate(eto_status="manufacturing_ready", version=boq.version), "bob")
        assert boq.engineering_progress == 100

    @pytest.mark.asyncio
    async def test_cannot_regress(self, db, quotation_with_boq):
        _, boq = await quotation_with_boq()
        boq = await set_eto_status(db, boq.id, EtoStatusUpdate(eto_status="bom_generation", version=boq.version), "bob")

        with pytest.raises(InvalidTransition):
            await set_eto_status(db, boq.id, EtoStatusUpdate(eto_status="boq_submitted", version=boq.version), "bob")

        stored = await get_boq(db, boq.id)
        assert stored.eto_status == EtoStatus.bom_generation
        assert stored.engineering_progress == 75
