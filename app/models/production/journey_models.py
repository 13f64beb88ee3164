from sqlalchemy import Column, Integer, String, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.types import Date

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin
from app.models.enums.production_status import JourneyStatus, JourneyStepStatus, Priority


class ProductionJourney(Base, TimestampMixin, AuditMixin):
    __tablename__ = "production_journeys"

    id = Column(Integer, primary_key=True)
    journey_number = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(String, nullable=True)
    priority = Column(Enum(Priority), nullable=False, default=Priority.medium)
    status = Column(Enum(JourneyStatus), nullable=False, default=JourneyStatus.planned)
    workstation_ids = Column(JSON, nullable=False, default=list)
    operator_ids = Column(JSON, nullable=False, default=list)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    steps = relationship(
        "JourneyStep",
        back_populates="journey",
        cascade="all, delete-orphan",
        order_by="JourneyStep.position",
        lazy="selectin",
    )
    work_orders = relationship("ProductionWorkOrder", lazy="selectin")

    def __repr__(self):
        return f"<ProductionJourney {self.journey_number} status={self.status}>"


class JourneyStep(Base, TimestampMixin):
    __tablename__ = "journey_steps"

    id = Column(Integer, primary_key=True)
    journey_id = Column(Integer, ForeignKey("production_journeys.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(String, nullable=True)
    status = Column(Enum(JourneyStepStatus), nullable=False, default=JourneyStepStatus.pending)

    journey = relationship("ProductionJourney", back_populates="steps")
