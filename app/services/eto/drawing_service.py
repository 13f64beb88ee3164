from datetime import datetime, timezone
import logging
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from app.models.eto.drawing_models import EngineeringDrawing, DrawingApproval, ReviewComment
from app.models.eto.quotation_models import Quotation
from app.models.enums.drawing_status import DrawingStatus, ApprovalStatus, ReviewCommentStatus

from app.schemas.eto.drawing_schemas import (
    DrawingSubmit,
    DrawingResubmit,
    ApprovalDecisionIn,
    ReviewCommentCreate,
    DrawingOut,
    DrawingApprovalOut,
    ReviewCommentOut,
)

from app.core.config import DEFAULT_DRAWING_REVIEWERS
from app.core.exceptions import NotFoundError, InvalidTransition, ConcurrencyConflict
from app.constants.error_codes import ErrorCode
from app.constants.activity_codes import ActivityCode
from app.utils.activity_helpers import emit_activity

from app.services.eto.approval_core import ApprovalWorkflow, open_comment_count
from app.services.eto.revision_core import next_revision, RevisionKind

logger = logging.getLogger(__name__)

ENGINEERING_IN_REVIEW = "Drawing In Review"
ENGINEERING_COMPLETE = "Drawing Complete"

MAX_DECISION_ATTEMPTS = 3


# =====================================================
# LOADERS / MAPPERS
# =====================================================
async def _get_drawing(
    db: AsyncSession,
    drawing_id: int,
    *,
    for_update: bool = False,
    refresh: bool = False,
) -> EngineeringDrawing:
    stmt = select(EngineeringDrawing).where(EngineeringDrawing.id == drawing_id)
    if for_update:
        stmt = stmt.with_for_update()
    # Mutations always work from the committed row, never the identity map.
    if for_update or refresh:
        stmt = stmt.execution_options(populate_existing=True)

    result = await db.execute(stmt)
    drawing = result.scalar_one_or_none()
    if not drawing:
        raise NotFoundError("Drawing not found", ErrorCode.DRAWING_NOT_FOUND)
    return drawing


async def _get_quotation(db: AsyncSession, quotation_id: int) -> Quotation:
    result = await db.execute(
        select(Quotation).where(
            Quotation.id == quotation_id,
            Quotation.is_deleted.is_(False),
        )
    )
    q = result.scalar_one_or_none()
    if not q:
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)
    return q


def _map_drawing(d: EngineeringDrawing) -> DrawingOut:
    workflow = ApprovalWorkflow(d.approvals)
    return DrawingOut(
        id=d.id,
        drawing_number=d.drawing_number,
        quotation_id=d.quotation_id,
        drawing_type=d.drawing_type,
        engineer=d.engineer,
        specifications=d.specifications,
        revision=d.revision,
        status=d.status,
        version=d.version,
        created_at=d.created_at,
        updated_at=d.updated_at,
        fully_approved=workflow.is_fully_approved(),
        pending_roles=workflow.pending_roles(),
        open_comments=open_comment_count(d.comments),
        approvals=[DrawingApprovalOut.model_validate(a) for a in d.approvals],
        comments=[ReviewCommentOut.model_validate(c) for c in d.comments],
    )


async def _claim_drawing(
    db: AsyncSession,
    drawing_id: int,
    expected_version: int,
    actor: str,
    **values,
) -> bool:
    """Flush pending child rows, then write the drawing only if nobody else has.

    Returns False when another writer moved the version first; the caller
    rolls back.
    """
    await db.flush()
    result = await db.execute(
        update(EngineeringDrawing)
        .where(
            EngineeringDrawing.id == drawing_id,
            EngineeringDrawing.version == expected_version,
        )
        .values(
            version=expected_version + 1,
            updated_by=actor,
            updated_at=datetime.now(timezone.utc),
            **values,
        )
        .returning(EngineeringDrawing.id)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none() is not None


# =====================================================
# SUBMIT / READ
# =====================================================
async def submit_drawing(db: AsyncSession, payload: DrawingSubmit, actor: str) -> DrawingOut:
    q = await _get_quotation(db, payload.quotation_id)
    if q.converted_to_so:
        raise InvalidTransition("Quotation already converted to a sales order", unmet="converted_to_so == false")

    if payload.reviewers:
        reviewers = [(r.role, r.approver) for r in payload.reviewers]
    else:
        reviewers = [(role, None) for role in DEFAULT_DRAWING_REVIEWERS]

    drawing = EngineeringDrawing(
        drawing_number=f"DWG-TMP-{uuid4().hex[:12]}",
        quotation_id=q.id,
        drawing_type=payload.drawing_type,
        engineer=payload.engineer,
        specifications=payload.specifications,
        revision="Rev A",
        status=DrawingStatus.in_review,
        version=1,
        created_by=actor,
        updated_by=actor,
    )
    drawing.approvals = [
        DrawingApproval(role=role, approver=approver, status=ApprovalStatus.pending)
        for role, approver in reviewers
    ]
    drawing.comments = []

    db.add(drawing)
    await db.flush()

    drawing.drawing_number = f"DWG-{drawing.id:06d}"

    q.engineering_drawing_created = True
    q.engineering_drawing_id = drawing.id
    q.engineering_status = ENGINEERING_IN_REVIEW
    q.version += 1
    q.updated_by = actor
    q.updated_at = datetime.now(timezone.utc)

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.SUBMIT_DRAWING,
        target_name=drawing.drawing_number,
        quotation_number=q.quotation_number,
    )
    await db.commit()

    logger.info(
        "Drawing %s submitted for %s with reviewers %s",
        drawing.drawing_number,
        q.quotation_number,
        ", ".join(role for role, _ in reviewers),
    )
    return _map_drawing(drawing)


async def get_drawing(db: AsyncSession, drawing_id: int) -> DrawingOut:
    return _map_drawing(await _get_drawing(db, drawing_id))


# =====================================================
# APPROVALS
# =====================================================
async def record_approval_decision(
    db: AsyncSession,
    drawing_id: int,
    approval_id: int,
    payload: ApprovalDecisionIn,
    actor: str,
) -> DrawingOut:
    # Reviewers decide independently; a decision that lost the race is
    # re-applied on top of the winner's so completion is never missed.
    for attempt in range(1, MAX_DECISION_ATTEMPTS + 1):
        drawing = await _get_drawing(db, drawing_id, for_update=True)
        expected_version = drawing.version
        drawing_number = drawing.drawing_number
        workflow = ApprovalWorkflow(drawing.approvals)

        record = workflow.find(approval_id)
        became_complete = workflow.record_decision(
            approval_id,
            payload.approved,
            comments=payload.comments,
            approver=payload.approver or actor,
        )

        await emit_activity(
            db,
            actor=actor,
            code=ActivityCode.APPROVE_DRAWING if payload.approved else ActivityCode.REJECT_DRAWING,
            target_name=drawing_number,
            role=record.role,
        )

        status = DrawingStatus(drawing.status)
        completed_quotation = None
        if workflow.has_rejection():
            status = DrawingStatus.rejected
        elif became_complete:
            status = DrawingStatus.approved
            q = await _get_quotation(db, drawing.quotation_id)
            if q.engineering_status != ENGINEERING_COMPLETE:
                q.engineering_status = ENGINEERING_COMPLETE
                q.updated_by = actor
                q.updated_at = datetime.now(timezone.utc)
                await emit_activity(
                    db,
                    actor=actor,
                    code=ActivityCode.DRAWING_COMPLETE,
                    target_name=q.quotation_number,
                )
                completed_quotation = q.quotation_number

        if await _claim_drawing(db, drawing_id, expected_version, actor, status=status):
            await db.commit()
            break

        await db.rollback()
        logger.warning(
            "Drawing %s changed during decision on approval %s (attempt %d)",
            drawing_number,
            approval_id,
            attempt,
        )
    else:
        raise ConcurrencyConflict("Drawing modified by another reviewer", ErrorCode.VERSION_CONFLICT)

    if completed_quotation:
        logger.info("Engineering complete for %s via drawing %s", completed_quotation, drawing_number)
    return _map_drawing(await _get_drawing(db, drawing_id, refresh=True))


async def resubmit_drawing(
    db: AsyncSession,
    drawing_id: int,
    payload: DrawingResubmit,
    actor: str,
) -> DrawingOut:
    drawing = await _get_drawing(db, drawing_id, for_update=True)
    if drawing.version != payload.version:
        raise ConcurrencyConflict("Version conflict", ErrorCode.VERSION_CONFLICT)

    if DrawingStatus(drawing.status) != DrawingStatus.rejected:
        raise InvalidTransition("Only a rejected drawing can be resubmitted", unmet="status == rejected")

    reset = ApprovalWorkflow(drawing.approvals).reset_rejections()

    drawing_number = drawing.drawing_number
    revision = next_revision(drawing.revision, RevisionKind.major)
    values = {"revision": revision, "status": DrawingStatus.in_review}
    if payload.specifications is not None:
        values["specifications"] = payload.specifications
    if payload.notes:
        drawing.comments.append(ReviewComment(author=actor, body=payload.notes, status=ReviewCommentStatus.open))

    await emit_activity(
        db,
        actor=actor,
        code=ActivityCode.RESUBMIT_DRAWING,
        target_name=drawing_number,
        revision=revision,
    )

    if not await _claim_drawing(db, drawing_id, payload.version, actor, **values):
        await db.rollback()
        raise ConcurrencyConflict("Version conflict", ErrorCode.VERSION_CONFLICT)
    await db.commit()

    logger.info("Drawing %s resubmitted as %s; reset %s", drawing_number, revision, reset)
    return _map_drawing(await _get_drawing(db, drawing_id, refresh=True))


# =====================================================
# REVIEW COMMENTS
# =====================================================
async def add_review_comment(
    db: AsyncSession,
    drawing_id: int,
    payload: ReviewCommentCreate,
    actor: str,
) -> DrawingOut:
    drawing = await _get_drawing(db, drawing_id, for_update=True)

    drawing.comments.append(
        ReviewComment(
            author=payload.author or actor,
            body=payload.body,
            status=ReviewCommentStatus.open,
        )
    )
    drawing.updated_by = actor
    await db.commit()
    return _map_drawing(drawing)


async def resolve_review_comment(
    db: AsyncSession,
    drawing_id: int,
    comment_id: int,
    actor: str,
) -> DrawingOut:
    drawing = await _get_drawing(db, drawing_id, for_update=True)

    comment = next((c for c in drawing.comments if c.id == comment_id), None)
    if not comment:
        raise NotFoundError("Review comment not found", ErrorCode.REVIEW_COMMENT_NOT_FOUND)

    if ReviewCommentStatus(comment.status) == ReviewCommentStatus.resolved:
        return _map_drawing(drawing)

    comment.status = ReviewCommentStatus.resolved
    comment.resolved_at = datetime.now(timezone.utc)
    drawing.updated_by = actor
    await db.commit()
    return _map_drawing(drawing)
