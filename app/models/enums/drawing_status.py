# app/models/enums/drawing_status.py
import enum


class DrawingStatus(str, enum.Enum):
    in_review = "in_review"
    approved = "approved"
    rejected = "rejected"


class ApprovalStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ReviewCommentStatus(str, enum.Enum):
    open = "open"
    resolved = "resolved"
