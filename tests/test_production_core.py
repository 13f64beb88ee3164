from types import SimpleNamespace

import pytest

from app.core.exceptions import InvalidTransition
from app.models.enums.production_status import WorkOrderStatus, JourneyStatus, JourneyStepStatus
from app.services.production.production_core import (
    advance_work_order,
    advance_journey,
    clamp_progress,
    aggregate_progress,
    resolve_step_status,
    setup_step_status,
)


def work_order(status=WorkOrderStatus.planned, progress=0):
    return SimpleNamespace(status=status, progress=progress)


class TestWorkOrderTransitions:
    def test_full_happy_path_bumps_progress(self):
        wo = work_order()

        assert advance_work_order(wo, WorkOrderStatus.in_progress) == WorkOrderStatus.planned
        assert wo.progress == 10

        advance_work_order(wo, WorkOrderStatus.completed)
        assert wo.progress == 90

        advance_work_order(wo, WorkOrderStatus.quality_approved)
        assert wo.progress == 100
        assert wo.status == WorkOrderStatus.quality_approved

    def test_bumps_never_lower_progress(self):
        wo = work_order(status=WorkOrderStatus.planned, progress=35)
        advance_work_order(wo, "in_progress")
        assert wo.progress == 35

        wo.progress = 95
        advance_work_order(wo, "completed")
        assert wo.progress == 95

    def test_resume_from_hold_keeps_progress(self):
        wo = work_order(status=WorkOrderStatus.on_hold, progress=4)
        advance_work_order(wo, WorkOrderStatus.in_progress)
        assert wo.progress == 4

    def test_same_status_is_noop(self):
        wo = work_order(status=WorkOrderStatus.in_progress, progress=20)
        assert advance_work_order(wo, "in_progress") == WorkOrderStatus.in_progress
        assert wo.progress == 20

    @pytest.mark.parametrize(
        "current, target",
        [
            (WorkOrderStatus.planned, WorkOrderStatus.completed),
            (WorkOrderStatus.planned, WorkOrderStatus.quality_approved),
            (WorkOrderStatus.on_hold, WorkOrderStatus.completed),
            (WorkOrderStatus.quality_approved, WorkOrderStatus.in_progress),
            (WorkOrderStatus.cancelled, WorkOrderStatus.in_progress),
        ],
    )
    def test_illegal_transitions(self, current, target):
        wo = work_order(status=current, progress=50)
        with pytest.raises(InvalidTransition):
            advance_work_order(wo, target)
        assert wo.status == current
        assert wo.progress == 50


class TestProgress:
    @pytest.mark.parametrize(
        "value, expected",
        [(150, 100), (-5, 0), ("42", 42), ("abc", 0), (None, 0), ("99.6", 100), (float("nan"), 0)],
    )
    def test_clamp(self, value, expected):
        assert clamp_progress(value) == expected

    def test_aggregate(self):
        assert aggregate_progress([]) == 0
        assert aggregate_progress([10, 20]) == 15
        assert aggregate_progress([100, 0, 50]) == 50


class TestJourneys:
    def test_transitions(self):
        journey = SimpleNamespace(status=JourneyStatus.planned)
        advance_journey(journey, JourneyStatus.active)
        advance_journey(journey, JourneyStatus.paused)
        advance_journey(journey, JourneyStatus.active)
        advance_journey(journey, JourneyStatus.completed)
        assert journey.status == JourneyStatus.completed

        with pytest.raises(InvalidTransition):
            advance_journey(journey, JourneyStatus.active)

    def test_planned_cannot_complete(self):
        with pytest.raises(InvalidTransition):
            advance_journey(SimpleNamespace(status=JourneyStatus.planned), JourneyStatus.completed)

    def test_setup_needs_workstation_and_operator(self):
        assert setup_step_status([], []) == JourneyStepStatus.pending
        assert setup_step_status(["WS-1"], []) == JourneyStepStatus.pending
        assert setup_step_status([], ["OP-1"]) == JourneyStepStatus.pending
        assert setup_step_status(["WS-1"], ["OP-1"]) == JourneyStepStatus.completed

    def test_setup_ignores_stored_status(self):
        setup = SimpleNamespace(name="Setup", status=JourneyStepStatus.completed)
        assert resolve_step_status(setup, [], ["OP-1"]) == JourneyStepStatus.pending

    def test_other_steps_keep_stored_status(self):
        step = SimpleNamespace(name="Quality", status="in-progress")
        assert resolve_step_status(step, [], []) == JourneyStepStatus.in_progress
