"""Pipeline position of an order.

A stored `workflow_stage` always wins. Otherwise the stage is the first
match of a priority ladder over the order's flags; flags may be set in any
order and the ladder never fails on an unusual combination.
"""

from app.core.exceptions import InvalidTransition
from app.models.enums.boq_status import EtoStatus
from app.models.enums.quotation_status import QuotationStatus
from app.models.enums.workflow_stage import WorkflowStage


def _is_approved(order) -> bool:
    try:
        return QuotationStatus(order.status) == QuotationStatus.approved
    except ValueError:
        return False


STAGE_LADDER = (
    (lambda o: _is_approved(o) and bool(o.po_received), WorkflowStage.po_received),
    (lambda o: bool(o.sent_to_customer), WorkflowStage.customer_review),
    (lambda o: bool(o.boq_generated), WorkflowStage.ready_to_send),
    (lambda o: bool(o.engineering_drawing_created), WorkflowStage.boq_pending),
    (lambda o: bool(o.engineering_project_id), WorkflowStage.engineering),
)


def resolve_stage(order) -> WorkflowStage:
    if order.workflow_stage:
        return WorkflowStage(order.workflow_stage)

    for matches, stage in STAGE_LADDER:
        if matches(order):
            return stage
    return WorkflowStage.draft


# =====================================================
# BOQ ETO PROGRESS
# =====================================================
ETO_PROGRESS = {
    EtoStatus.boq_submitted: 0,
    EtoStatus.engineering_design: 50,
    EtoStatus.bom_generation: 75,
    EtoStatus.manufacturing_ready: 100,
}


def apply_eto_status(boq, status) -> int:
    """Set `eto_status` and its mapped `engineering_progress` together.

    Progress only moves forward; asking for an earlier ETO status raises
    `InvalidTransition`.
    """
    status = EtoStatus(status)
    current = ETO_PROGRESS.get(EtoStatus(boq.eto_status), 0) if boq.eto_status else 0
    if ETO_PROGRESS[status] < current:
        raise InvalidTransition(
            f"BOQ cannot move back to {status.value}",
            unmet=f"engineering_progress >= {current}",
        )
    boq.eto_status = status
    boq.engineering_progress = ETO_PROGRESS[status]
    return boq.engineering_progress
