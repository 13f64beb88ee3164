"""Work-order status transitions, progress rules and journey step derivation."""

from app.core.exceptions import InvalidTransition
from app.models.enums.production_status import (
    WorkOrderStatus,
    JourneyStatus,
    JourneyStepStatus,
)
from app.utils.decimal_utils import parse_decimal


WORK_ORDER_TRANSITIONS = {
    WorkOrderStatus.planned: {WorkOrderStatus.in_progress, WorkOrderStatus.cancelled},
    WorkOrderStatus.in_progress: {
        WorkOrderStatus.completed,
        WorkOrderStatus.on_hold,
        WorkOrderStatus.cancelled,
    },
    WorkOrderStatus.on_hold: {WorkOrderStatus.in_progress, WorkOrderStatus.cancelled},
    WorkOrderStatus.completed: {WorkOrderStatus.quality_approved},
    WorkOrderStatus.quality_approved: set(),
    WorkOrderStatus.cancelled: set(),
}

JOURNEY_TRANSITIONS = {
    JourneyStatus.planned: {JourneyStatus.active, JourneyStatus.cancelled},
    JourneyStatus.active: {JourneyStatus.paused, JourneyStatus.completed, JourneyStatus.cancelled},
    JourneyStatus.paused: {JourneyStatus.active, JourneyStatus.cancelled},
    JourneyStatus.completed: set(),
    JourneyStatus.cancelled: set(),
}

STARTED_PROGRESS = 10
COMPLETED_PROGRESS = 90
QUALITY_APPROVED_PROGRESS = 100

SETUP_STEP = "Setup"
DEFAULT_JOURNEY_STEPS = (
    (SETUP_STEP, "Configure workstations and operators"),
    ("Planning", "Create work orders and assign resources"),
    ("Production", "Execute production workflow"),
    ("Quality", "Perform quality inspections"),
    ("Completion", "Finalize and deliver"),
)

DEFAULT_WORK_ORDER_STEPS = ("Cutting", "Welding", "Assembly", "Painting", "Inspection")


def clamp_progress(value) -> int:
    """Manual overrides are clamped into [0, 100]; non-numbers become 0."""
    number = int(parse_decimal(value).to_integral_value())
    return max(0, min(100, number))


def progress_after(current: WorkOrderStatus, target: WorkOrderStatus, progress) -> int:
    progress = clamp_progress(progress)
    if target == WorkOrderStatus.in_progress and current == WorkOrderStatus.planned:
        return max(progress, STARTED_PROGRESS)
    if target == WorkOrderStatus.completed:
        return max(progress, COMPLETED_PROGRESS)
    if target == WorkOrderStatus.quality_approved:
        return QUALITY_APPROVED_PROGRESS
    return progress


def advance_work_order(work_order, target) -> WorkOrderStatus:
    """Move a work order to `target`, applying the progress bump.

    Returns the previous status. Re-requesting the current status is a
    no-op.
    """
    current = WorkOrderStatus(work_order.status)
    target = WorkOrderStatus(target)

    if current == target:
        return current

    if target not in WORK_ORDER_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Work order cannot move from {current.value} to {target.value}",
            unmet=f"status in {sorted(s.value for s in _sources_of(target))}",
        )

    work_order.progress = progress_after(current, target, work_order.progress)
    work_order.status = target
    return current


def _sources_of(target: WorkOrderStatus):
    return {src for src, targets in WORK_ORDER_TRANSITIONS.items() if target in targets}


def advance_journey(journey, target) -> JourneyStatus:
    current = JourneyStatus(journey.status)
    target = JourneyStatus(target)

    if current == target:
        return current

    if target not in JOURNEY_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Journey cannot move from {current.value} to {target.value}",
            unmet=f"journey status allows {target.value}",
        )

    journey.status = target
    return current


# =====================================================
# JOURNEYS
# =====================================================
def shopfloor_configured(workstation_ids, operator_ids) -> bool:
    return bool(workstation_ids) and bool(operator_ids)


def setup_step_status(workstation_ids, operator_ids) -> JourneyStepStatus:
    if shopfloor_configured(workstation_ids, operator_ids):
        return JourneyStepStatus.completed
    return JourneyStepStatus.pending


def resolve_step_status(step, workstation_ids, operator_ids) -> JourneyStepStatus:
    """Setup is derived from the assigned resources on every read; other steps are stored."""
    if step.name == SETUP_STEP:
        return setup_step_status(workstation_ids, operator_ids)
    return JourneyStepStatus(step.status)


def aggregate_progress(values) -> int:
    values = [clamp_progress(v) for v in values]
    if not values:
        return 0
    return round(sum(values) / len(values))
