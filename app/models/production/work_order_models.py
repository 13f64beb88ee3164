from sqlalchemy import Column, Integer, String, ForeignKey, Enum, CheckConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.types import Date

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin
from app.models.enums.production_status import WorkOrderStatus, WorkOrderStepStatus, Priority


class ProductionWorkOrder(Base, TimestampMixin, AuditMixin):
    __tablename__ = "production_work_orders"

    id = Column(Integer, primary_key=True)
    work_order_number = Column(String(50), nullable=False, unique=True, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="RESTRICT"), nullable=False, index=True)
    journey_id = Column(Integer, ForeignKey("production_journeys.id", ondelete="SET NULL"), nullable=True, index=True)
    priority = Column(Enum(Priority), nullable=False, default=Priority.medium)
    status = Column(Enum(WorkOrderStatus), nullable=False, default=WorkOrderStatus.planned)
    progress = Column(Integer, nullable=False, default=0)
    due_date = Column(Date, nullable=True)
    notes = Column(String, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    steps = relationship(
        "WorkOrderStep",
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="WorkOrderStep.position",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_work_order_progress_range"),
        Index("ix_work_order_sales_order_status", "sales_order_id", "status"),
    )

    def __repr__(self):
        return f"<ProductionWorkOrder {self.work_order_number} status={self.status} progress={self.progress}>"


class WorkOrderStep(Base, TimestampMixin):
    __tablename__ = "work_order_steps"

    id = Column(Integer, primary_key=True)
    work_order_id = Column(Integer, ForeignKey("production_work_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(100), nullable=False)
    status = Column(Enum(WorkOrderStepStatus), nullable=False, default=WorkOrderStepStatus.pending)
    assigned_worker = Column(String(150), nullable=True)

    work_order = relationship("ProductionWorkOrder", back_populates="steps")
