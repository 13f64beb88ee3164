# app/models/eto/sales_order_models.py

from decimal import Decimal

from sqlalchemy import Column, Integer, String, ForeignKey, Enum, Index, Numeric, CheckConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin
from app.models.enums.quotation_status import QuotationItemCategory
from app.models.enums.sales_order_status import SalesOrderStatus


class SalesOrder(Base, TimestampMixin, AuditMixin):
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True)
    so_number = Column(String(50), nullable=False, unique=True, index=True)

    # Unique: a quotation converts at most once.
    quotation_id = Column(Integer, ForeignKey("quotations.id", ondelete="RESTRICT"), nullable=False, unique=True)
    customer_name = Column(String(200), nullable=False)
    customer_po = Column(String(100), nullable=False)
    payment_terms = Column(String(100), nullable=False)
    delivery_terms = Column(String(200), nullable=True)

    subtotal = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    tax = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    status = Column(Enum(SalesOrderStatus), nullable=False, default=SalesOrderStatus.confirmed)

    items = relationship(
        "SalesOrderItem",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderItem.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_sales_order_status", "status"),
    )

    def __repr__(self):
        return f"<SalesOrder {self.so_number} quotation_id={self.quotation_id} status={self.status}>"


class SalesOrderItem(Base, TimestampMixin):
    __tablename__ = "sales_order_items"

    id = Column(Integer, primary_key=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    description = Column(String, nullable=False)
    unit = Column(String(30), nullable=True)
    category = Column(Enum(QuotationItemCategory), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    total_price = Column(Numeric(14, 2), nullable=False)

    sales_order = relationship("SalesOrder", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_so_item_quantity_non_negative"),
    )

    def __repr__(self):
        return f"<SalesOrderItem id={self.id} qty={self.quantity} total={self.total_price}>"
