from decimal import Decimal

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Enum, CheckConstraint
from sqlalchemy.orm import relationship, validates

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin
from app.models.enums.boq_status import BoqCategory, EtoStatus
from app.utils.decimal_utils import line_total


MONEY = Numeric(14, 2)


class Boq(Base, TimestampMixin, AuditMixin):
    __tablename__ = "boqs"

    id = Column(Integer, primary_key=True)
    boq_number = Column(String(50), nullable=False, unique=True, index=True)
    # One BOQ per order.
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="RESTRICT"), nullable=False, unique=True)
    notes = Column(String, nullable=True)

    # Rollup cache. Written only by cost_rollup_core.apply_boq_totals.
    material_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    labor_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    equipment_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    subcontract_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    other_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    total_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))

    # Written only by workflow_stage_core.apply_eto_status.
    eto_status = Column(Enum(EtoStatus), nullable=False, default=EtoStatus.boq_submitted)
    engineering_progress = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False, default=1)

    items = relationship(
        "BoqItem",
        back_populates="boq",
        cascade="all, delete-orphan",
        order_by="BoqItem.position",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("engineering_progress IN (0, 50, 75, 100)", name="ck_boq_engineering_progress"),
    )

    def __repr__(self):
        return f"<Boq {self.boq_number} total={self.total_cost} eto={self.eto_status}>"


class BoqItem(Base, TimestampMixin):
    __tablename__ = "boq_items"

    id = Column(Integer, primary_key=True)
    boq_id = Column(Integer, ForeignKey("boqs.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    description = Column(String, nullable=False)
    unit = Column(String(30), nullable=True)
    category = Column(Enum(BoqCategory), nullable=False, default=BoqCategory.material)
    quantity = Column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    unit_rate = Column(MONEY, nullable=False, default=Decimal("0.00"))
    total_amount = Column(MONEY, nullable=False, default=Decimal("0.00"))
    remarks = Column(String, nullable=True)

    boq = relationship("Boq", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_boq_item_quantity_non_negative"),
        CheckConstraint("unit_rate >= 0", name="ck_boq_item_rate_non_negative"),
    )

    @validates("quantity", "unit_rate")
    def _recompute_total_amount(self, key, value):
        quantity = value if key == "quantity" else self.quantity
        unit_rate = value if key == "unit_rate" else self.unit_rate
        self.total_amount = line_total(quantity, unit_rate)
        return value

    def __repr__(self):
        return f"<BoqItem id={self.id} category={self.category} amount={self.total_amount}>"
