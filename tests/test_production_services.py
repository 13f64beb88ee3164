import pytest

from app.core.exceptions import InvalidTransition, NotFoundError, ConcurrencyConflict
from app.constants.error_codes import ErrorCode
from app.models.enums.production_status import (
    WorkOrderStatus,
    WorkOrderStepStatus,
    JourneyStatus,
    JourneyStepStatus,
)
from app.models.enums.sales_order_status import SalesOrderStatus
from app.schemas.eto.quotation_schemas import SalesOrderConversionIn
from app.schemas.production.production_schemas import (
    WorkOrderCreate,
    WorkOrderStatusUpdate,
    WorkOrderProgressUpdate,
    WorkOrderStepUpdate,
    JourneyCreate,
    JourneyResourcesUpdate,
    JourneyStatusUpdate,
    JourneyStepUpdate,
)
from app.services.eto.order_conversion_service import convert_to_sales_order
from app.services.eto.sales_order_service import get_sales_order, list_sales_orders
from app.services.production.work_order_service import (
    create_work_order,
    get_work_order,
    list_work_orders,
    advance_work_order_status,
    set_work_order_progress,
    update_work_order_step,
)
from app.services.production.journey_service import (
    create_journey,
    get_journey,
    list_journeys,
    assign_resources,
    update_journey_step,
    set_journey_status,
)


@pytest.fixture
def sales_order(db, quotation_with_po):
    async def _create():
        q = await quotation_with_po()
        result = await convert_to_sales_order(db, q.id, SalesOrderConversionIn(), "alice")
        return await get_sales_order(db, result.sales_order_id)

    return _create


async def advance(db, wo, *statuses):
    for status in statuses:
        wo = await advance_work_order_status(db, wo.id, WorkOrderStatusUpdate(status=status, version=wo.version), "sam")
    return wo


class TestWorkOrders:
    @pytest.mark.asyncio
    async def test_create_moves_sales_order_into_production(self, db, sales_order):
        so = await sales_order()
        wo = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id), "sam")

        assert wo.work_order_number == f"WO-{wo.id:06d}"
        assert wo.status == WorkOrderStatus.planned
        assert wo.progress == 0
        assert [s.name for s in wo.steps] == ["Cutting", "Welding", "Assembly", "Painting", "Inspection"]
        assert (await get_sales_order(db, so.id)).status == SalesOrderStatus.in_production

    @pytest.mark.asyncio
    async def test_unknown_sales_order(self, db):
        with pytest.raises(NotFoundError) as exc:
            await create_work_order(db, WorkOrderCreate(sales_order_id=77), "sam")
        assert exc.value.error_code == ErrorCode.SALES_ORDER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_progress_bumps_and_sales_order_completion(self, db, sales_order):
        so = await sales_order()
        first = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id, steps=["Fabricate"]), "sam")
        second = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id), "sam")

        first = await advance(db, first, WorkOrderStatus.in_progress)
        assert first.progress == 10
        first = await advance(db, first, WorkOrderStatus.completed)
        assert first.progress == 90
        first = await advance(db, first, WorkOrderStatus.quality_approved)
        assert first.progress == 100

        # The second work order still holds the sales order open.
        assert (await get_sales_order(db, so.id)).status == SalesOrderStatus.in_production

        await advance(db, second, WorkOrderStatus.cancelled)
        assert (await get_sales_order(db, so.id)).status == SalesOrderStatus.in_production

        third = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id), "sam")
        await advance(
            db, third, WorkOrderStatus.in_progress, WorkOrderStatus.completed, WorkOrderStatus.quality_approved
        )
        assert (await get_sales_order(db, so.id)).status == SalesOrderStatus.completed

        completed = await list_sales_orders(db, status=SalesOrderStatus.completed)
        assert completed.total == 1

    @pytest.mark.asyncio
    async def test_illegal_transition_is_refused(self, db, sales_order):
        so = await sales_order()
        wo = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id), "sam")

        with pytest.raises(InvalidTransition):
            await advance(db, wo, WorkOrderStatus.quality_approved)

        stored = await get_work_order(db, wo.id)
        assert stored.status == WorkOrderStatus.planned
        assert stored.progress == 0

    @pytest.mark.asyncio
    async def test_manual_progress_is_clamped(self, db, sales_order):
        so = await sales_order()
        wo = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id), "sam")

        wo = await set_work_order_progress(db, wo.id, WorkOrderProgressUpdate(progress="250", version=wo.version), "sam")
        assert wo.progress == 100

        wo = await set_work_order_progress(db, wo.id, WorkOrderProgressUpdate(progress="-3", version=wo.version), "sam")
        assert wo.progress == 0

        with pytest.raises(ConcurrencyConflict):
            await set_work_order_progress(db, wo.id, WorkOrderProgressUpdate(progress=5, version=1), "sam")

    @pytest.mark.asyncio
    async def test_steps_and_listing(self, db, sales_order):
        so = await sales_order()
        wo = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id), "sam")

        wo = await update_work_order_step(
            db, wo.id, wo.steps[0].id, WorkOrderStepUpdate(status="in_progress", assigned_worker="ana"), "sam"
        )
        assert wo.steps[0].status == WorkOrderStepStatus.in_progress
        assert wo.steps[0].assigned_worker == "ana"

        with pytest.raises(NotFoundError):
            await update_work_order_step(db, wo.id, 9999, WorkOrderStepUpdate(status="completed"), "sam")

        listed = await list_work_orders(db, sales_order_id=so.id)
        assert listed.total == 1
        assert (await list_work_orders(db, status=WorkOrderStatus.completed)).total == 0


class TestJourneys:
    @pytest.mark.asyncio
    async def test_default_steps_and_setup_derivation(self, db):
        journey = await create_journey(db, JourneyCreate(name="Tank line"), "sam")

        assert journey.journey_number == f"J-{journey.id:06d}"
        assert [s.name for s in journey.steps] == ["Setup", "Planning", "Production", "Quality", "Completion"]
        assert journey.steps[0].status == JourneyStepStatus.pending
        assert journey.progress == 0

        journey = await assign_resources(
            db, journey.id, JourneyResourcesUpdate(workstation_ids=["WS-1"], version=journey.version), "sam"
        )
        assert journey.steps[0].status == JourneyStepStatus.pending

        journey = await assign_resources(
            db, journey.id, JourneyResourcesUpdate(operator_ids=["OP-1"], version=journey.version), "sam"
        )
        assert journey.steps[0].status == JourneyStepStatus.completed

        journey = await assign_resources(
            db, journey.id, JourneyResourcesUpdate(workstation_ids=[], version=journey.version), "sam"
        )
        assert journey.steps[0].status == JourneyStepStatus.pending

    @pytest.mark.asyncio
    async def test_setup_cannot_be_set_directly(self, db):
        journey = await create_journey(db, JourneyCreate(name="Tank line"), "sam")
        setup, planning = journey.steps[0], journey.steps[1]

        with pytest.raises(InvalidTransition):
            await update_journey_step(db, journey.id, setup.id, JourneyStepUpdate(status="completed"), "sam")

        journey = await update_journey_step(db, journey.id, planning.id, JourneyStepUpdate(status="in-progress"), "sam")
        assert journey.steps[1].status == JourneyStepStatus.in_progress

    @pytest.mark.asyncio
    async def test_status_transitions(self, db):
        journey = await create_journey(db, JourneyCreate(name="Tank line"), "sam")

        journey = await set_journey_status(db, journey.id, JourneyStatusUpdate(status="active", version=journey.version), "sam")
        assert journey.status == JourneyStatus.active

        with pytest.raises(InvalidTransition):
            await set_journey_status(db, journey.id, JourneyStatusUpdate(status="planned", version=journey.version), "sam")

        assert (await list_journeys(db, status=JourneyStatus.active)).total == 1

    @pytest.mark.asyncio
    async def test_progress_is_mean_of_work_orders(self, db, sales_order):
        so = await sales_order()
        journey = await create_journey(db, JourneyCreate(name="Tank line", workstation_ids=["WS-1"], operator_ids=["OP-1"]), "sam")
        assert journey.steps[0].status == JourneyStepStatus.completed

        a = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id, journey_id=journey.id), "sam")
        b = await create_work_order(db, WorkOrderCreate(sales_order_id=so.id, journey_id=journey.id), "sam")
        await advance(db, a, WorkOrderStatus.in_progress, WorkOrderStatus.completed)
        await set_work_order_progress(db, b.id, WorkOrderProgressUpdate(progress=30, version=b.version), "sam")

        journey = await get_journey(db, journey.id)
        assert journey.total_work_orders == 2
        assert journey.completed_work_orders == 1
        assert journey.progress == 60

    @pytest.mark.asyncio
    async def test_work_order_with_unknown_journey(self, db, sales_order):
        so = await sales_order()
        with pytest.raises(NotFoundError) as exc:
            await create_work_order(db, WorkOrderCreate(sales_order_id=so.id, journey_id=404), "sam")
        assert exc.value.error_code == ErrorCode.JOURNEY_NOT_FOUND
