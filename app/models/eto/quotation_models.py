from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Numeric,
    Enum,
    Index,
    CheckConstraint,
    Boolean,
    DateTime,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.types import Date

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin
from app.models.enums.quotation_status import (
    QuotationStatus,
    QuotationItemCategory,
    RevisionAction,
)
from app.models.enums.workflow_stage import WorkflowStage
from app.services.eto.workflow_stage_core import resolve_stage
from app.utils.decimal_utils import line_total


MONEY = Numeric(14, 2)
QUANTITY = Numeric(12, 3)


class Quotation(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True)
    quotation_number = Column(String(50), nullable=False, unique=True, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(200), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    valid_until = Column(Date, nullable=True)
    payment_terms = Column(String(100), nullable=False, default="Net 30")
    delivery_terms = Column(String(200), nullable=True)

    status = Column(Enum(QuotationStatus), nullable=False, default=QuotationStatus.draft, index=True)
    revision = Column(String(20), nullable=False, default="1.0")

    # Rollup cache. Written only by cost_rollup_core.apply_quotation_totals.
    subtotal = Column(MONEY, nullable=False, default=Decimal("0.00"))
    engineering_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    material_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    labor_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    overhead_cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    profit_margin = Column(MONEY, nullable=False, default=Decimal("0.00"))
    tax = Column(MONEY, nullable=False, default=Decimal("0.00"))
    total = Column(MONEY, nullable=False, default=Decimal("0.00"))

    # Pipeline flags
    engineering_project_id = Column(String(100), nullable=True)
    # Back-references to child records are plain ids; the children own the FKs.
    engineering_drawing_id = Column(Integer, nullable=True)
    engineering_drawing_created = Column(Boolean, nullable=False, default=False)
    engineering_status = Column(String(50), nullable=True)
    boq_id = Column(Integer, nullable=True)
    boq_generated = Column(Boolean, nullable=False, default=False)
    sent_to_customer = Column(Boolean, nullable=False, default=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    po_received = Column(Boolean, nullable=False, default=False)
    po_number = Column(String(100), nullable=True)
    po_amount = Column(MONEY, nullable=True)
    po_date = Column(Date, nullable=True)
    converted_to_so = Column(Boolean, nullable=False, default=False, index=True)
    so_id = Column(Integer, nullable=True)
    workflow_stage = Column(Enum(WorkflowStage), nullable=True)

    version = Column(Integer, nullable=False, default=1)

    items = relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.position",
        lazy="selectin",
    )
    revisions = relationship(
        "QuotationRevision",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationRevision.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_quotation_status_converted", "status", "converted_to_so"),
        CheckConstraint("subtotal >= 0 AND tax >= 0 AND total >= 0", name="ck_quotation_amounts_non_negative"),
        CheckConstraint("converted_to_so = FALSE OR so_id IS NOT NULL", name="ck_quotation_converted_has_so"),
    )

    @property
    def stage(self) -> WorkflowStage:
        return resolve_stage(self)

    def __repr__(self):
        return f"<Quotation {self.quotation_number} status={self.status} rev={self.revision}>"


class QuotationItem(Base, TimestampMixin):
    __tablename__ = "quotation_items"

    id = Column(Integer, primary_key=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    description = Column(String, nullable=False)
    unit = Column(String(30), nullable=True)
    category = Column(Enum(QuotationItemCategory), nullable=False, default=QuotationItemCategory.material)
    quantity = Column(QUANTITY, nullable=False, default=Decimal("0"))
    unit_price = Column(MONEY, nullable=False, default=Decimal("0.00"))
    total_price = Column(MONEY, nullable=False, default=Decimal("0.00"))

    quotation = relationship("Quotation", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_quotation_item_quantity_non_negative"),
        CheckConstraint("unit_price >= 0", name="ck_quotation_item_price_non_negative"),
    )

    @validates("quantity", "unit_price")
    def _recompute_total_price(self, key, value):
        quantity = value if key == "quantity" else self.quantity
        unit_price = value if key == "unit_price" else self.unit_price
        self.total_price = line_total(quantity, unit_price)
        return value

    def __repr__(self):
        return f"<QuotationItem id={self.id} qty={self.quantity} total={self.total_price}>"


class QuotationRevision(Base, TimestampMixin):
    """Append-only change history, one row per revision bump."""

    __tablename__ = "quotation_revisions"

    id = Column(Integer, primary_key=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True)
    revision = Column(String(20), nullable=False)
    previous_revision = Column(String(20), nullable=True)
    action = Column(Enum(RevisionAction), nullable=False)
    reason = Column(String(200), nullable=False)
    notes = Column(String, nullable=True)
    cost_impact = Column(MONEY, nullable=False, default=Decimal("0.00"))
    changed_by = Column(String(150), nullable=True)

    quotation = relationship("Quotation", back_populates="revisions")

    def __repr__(self):
        return f"<QuotationRevision quotation_id={self.quotation_id} revision={self.revision}>"
