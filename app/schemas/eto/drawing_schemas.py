from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime

from app.models.enums.drawing_status import DrawingStatus, ApprovalStatus, ReviewCommentStatus


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ==============================
# INPUTS
# ==============================
class ReviewerIn(BaseModel):
    role: str = Field(min_length=1)
    approver: Optional[str] = None


class DrawingSubmit(BaseModel):
    quotation_id: int
    drawing_type: str = Field(min_length=1)
    engineer: Optional[str] = None
    specifications: Optional[str] = None
    # Defaults to DEFAULT_DRAWING_REVIEWERS when omitted.
    reviewers: Optional[List[ReviewerIn]] = None


class DrawingResubmit(BaseModel):
    version: int
    specifications: Optional[str] = None
    notes: Optional[str] = None


class ApprovalDecisionIn(BaseModel):
    approved: bool
    comments: Optional[str] = None
    approver: Optional[str] = None


class ReviewCommentCreate(BaseModel):
    body: str = Field(min_length=1)
    author: Optional[str] = None


# ==============================
# OUTPUTS
# ==============================
class DrawingApprovalOut(ORMBase):
    id: int
    role: str
    approver: Optional[str]
    status: ApprovalStatus
    comments: Optional[str]
    decided_at: Optional[datetime]


class ReviewCommentOut(ORMBase):
    id: int
    author: Optional[str]
    body: str
    status: ReviewCommentStatus
    created_at: datetime
    resolved_at: Optional[datetime]


class DrawingOut(ORMBase):
    id: int
    drawing_number: str
    quotation_id: int
    drawing_type: str
    engineer: Optional[str]
    specifications: Optional[str]
    revision: str
    status: DrawingStatus
    version: int
    created_at: datetime
    updated_at: Optional[datetime]

    fully_approved: bool
    pending_roles: List[str]
    open_comments: int

    approvals: List[DrawingApprovalOut]
    comments: List[ReviewCommentOut]
