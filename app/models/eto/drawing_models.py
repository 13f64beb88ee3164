from sqlalchemy import Column, Integer, String, ForeignKey, Enum, DateTime
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin
from app.models.enums.drawing_status import DrawingStatus, ApprovalStatus, ReviewCommentStatus


class EngineeringDrawing(Base, TimestampMixin, AuditMixin):
    __tablename__ = "engineering_drawings"

    id = Column(Integer, primary_key=True)
    drawing_number = Column(String(50), nullable=False, unique=True, index=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="RESTRICT"), nullable=False, index=True)
    drawing_type = Column(String(100), nullable=False)
    engineer = Column(String(150), nullable=True)
    specifications = Column(String, nullable=True)
    revision = Column(String(20), nullable=False, default="Rev A")
    status = Column(Enum(DrawingStatus), nullable=False, default=DrawingStatus.in_review)
    version = Column(Integer, nullable=False, default=1)

    approvals = relationship(
        "DrawingApproval",
        back_populates="drawing",
        cascade="all, delete-orphan",
        order_by="DrawingApproval.id",
        lazy="selectin",
    )
    comments = relationship(
        "ReviewComment",
        back_populates="drawing",
        cascade="all, delete-orphan",
        order_by="ReviewComment.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<EngineeringDrawing {self.drawing_number} {self.revision} status={self.status}>"


class DrawingApproval(Base, TimestampMixin):
    __tablename__ = "drawing_approvals"

    id = Column(Integer, primary_key=True)
    drawing_id = Column(Integer, ForeignKey("engineering_drawings.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(100), nullable=False)
    approver = Column(String(150), nullable=True)
    status = Column(Enum(ApprovalStatus), nullable=False, default=ApprovalStatus.pending)
    comments = Column(String, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)

    drawing = relationship("EngineeringDrawing", back_populates="approvals")

    def __repr__(self):
        return f"<DrawingApproval id={self.id} role={self.role} status={self.status}>"


class ReviewComment(Base, TimestampMixin):
    __tablename__ = "drawing_review_comments"

    id = Column(Integer, primary_key=True)
    drawing_id = Column(Integer, ForeignKey("engineering_drawings.id", ondelete="CASCADE"), nullable=False, index=True)
    author = Column(String(150), nullable=True)
    body = Column(String, nullable=False)
    status = Column(Enum(ReviewCommentStatus), nullable=False, default=ReviewCommentStatus.open)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    drawing = relationship("EngineeringDrawing", back_populates="comments")
