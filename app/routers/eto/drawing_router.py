from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.utils.get_actor import get_actor
from app.utils.response import success_response, APIResponse

from app.schemas.eto.drawing_schemas import (
    DrawingSubmit,
    DrawingResubmit,
    ApprovalDecisionIn,
    ReviewCommentCreate,
    DrawingOut,
)

from app.services.eto.drawing_service import (
    submit_drawing,
    get_drawing,
    resubmit_drawing,
    record_approval_decision,
    add_review_comment,
    resolve_review_comment,
)

router = APIRouter(
    prefix="/drawings",
    tags=["Engineering Drawings"],
)


@router.post("", response_model=APIResponse[DrawingOut])
async def submit_drawing_api(
    payload: DrawingSubmit,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Drawing submitted for review",
        await submit_drawing(db, payload, actor),
    )


@router.get("/{drawing_id}", response_model=APIResponse[DrawingOut])
async def get_drawing_api(
    drawing_id: int,
    db: AsyncSession = Depends(get_db),
):
    return success_response(
        "Drawing retrieved successfully",
        await get_drawing(db, drawing_id),
    )


@router.post("/{drawing_id}/resubmit", response_model=APIResponse[DrawingOut])
async def resubmit_drawing_api(
    drawing_id: int,
    payload: DrawingResubmit,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Drawing resubmitted for review",
        await resubmit_drawing(db, drawing_id, payload, actor),
    )


@router.post(
    "/{drawing_id}/approvals/{approval_id}/decision",
    response_model=APIResponse[DrawingOut],
)
async def approval_decision_api(
    drawing_id: int,
    approval_id: int,
    payload: ApprovalDecisionIn,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Approval decision recorded",
        await record_approval_decision(db, drawing_id, approval_id, payload, actor),
    )


@router.post("/{drawing_id}/comments", response_model=APIResponse[DrawingOut])
async def add_comment_api(
    drawing_id: int,
    payload: ReviewCommentCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Review comment added",
        await add_review_comment(db, drawing_id, payload, actor),
    )


@router.post(
    "/{drawing_id}/comments/{comment_id}/resolve",
    response_model=APIResponse[DrawingOut],
)
async def resolve_comment_api(
    drawing_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    return success_response(
        "Review comment resolved",
        await resolve_review_comment(db, drawing_id, comment_id, actor),
    )
