from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date

from app.models.enums.quotation_status import (
    QuotationStatus,
    QuotationItemCategory,
    RevisionAction,
    CustomerDecision,
)
from app.models.enums.workflow_stage import WorkflowStage


# =====================================================
# BASE
# =====================================================
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# =====================================================
# ITEM PAYLOADS
# =====================================================
class QuotationItemIn(BaseModel):
    description: str = Field(min_length=1)
    unit: Optional[str] = None
    category: QuotationItemCategory = QuotationItemCategory.material
    quantity: Decimal = Field(ge=0)
    unit_price: Decimal = Field(ge=0)


# =====================================================
# ITEM RESPONSES
# =====================================================
class QuotationItemOut(ORMBase):
    id: int
    position: int
    description: str
    unit: Optional[str]
    category: QuotationItemCategory
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal


class QuotationRevisionOut(ORMBase):
    id: int
    revision: str
    previous_revision: Optional[str]
    action: RevisionAction
    reason: str
    notes: Optional[str]
    cost_impact: Decimal
    changed_by: Optional[str]
    created_at: datetime


# =====================================================
# QUOTATION CREATE / UPDATE
# =====================================================
class QuotationCreate(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    title: str = Field(min_length=1)
    description: Optional[str] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    payment_terms: Optional[str] = None
    delivery_terms: Optional[str] = None
    items: List[QuotationItemIn] = []


class QuotationUpdate(BaseModel):
    # "draft" saves a minor revision, "update" a major one.
    action: RevisionAction = RevisionAction.draft
    revision_notes: Optional[str] = None

    title: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    valid_until: Optional[date] = None
    payment_terms: Optional[str] = None
    delivery_terms: Optional[str] = None
    items: Optional[List[QuotationItemIn]] = None

    version: int


class EngineeringProjectAttach(BaseModel):
    engineering_project_id: str = Field(min_length=1)
    version: int


class CustomerResponse(BaseModel):
    decision: CustomerDecision
    notes: Optional[str] = None


class PurchaseOrderIn(BaseModel):
    po_number: str
    po_amount: Optional[Decimal] = Field(default=None, ge=0)
    po_date: Optional[date] = None

    @field_validator("po_number")
    @classmethod
    def strip_po_number(cls, v: str) -> str:
        return v.strip()


class SalesOrderConversionIn(BaseModel):
    customer_po: Optional[str] = None


# =====================================================
# QUOTATION RESPONSES
# =====================================================
class QuotationOut(ORMBase):
    id: int
    quotation_number: str
    customer_name: str
    customer_email: Optional[str]
    title: str
    description: Optional[str]
    notes: Optional[str]
    valid_until: Optional[date]
    payment_terms: str
    delivery_terms: Optional[str]

    status: QuotationStatus
    stage: WorkflowStage
    workflow_stage: Optional[WorkflowStage]
    revision: str

    subtotal: Decimal
    engineering_cost: Decimal
    material_cost: Decimal
    labor_cost: Decimal
    overhead_cost: Decimal
    profit_margin: Decimal
    tax: Decimal
    total: Decimal

    engineering_project_id: Optional[str]
    engineering_drawing_id: Optional[int]
    engineering_drawing_created: bool
    engineering_status: Optional[str]
    boq_id: Optional[int]
    boq_generated: bool
    sent_to_customer: bool
    sent_at: Optional[datetime]
    po_received: bool
    po_number: Optional[str]
    po_amount: Optional[Decimal]
    po_date: Optional[date]
    converted_to_so: bool
    so_id: Optional[int]

    version: int
    created_by: Optional[str]
    updated_by: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    items: List[QuotationItemOut]
    revisions: List[QuotationRevisionOut]


class QuotationListItem(BaseModel):
    id: int
    quotation_number: str
    customer_name: str
    title: str
    status: QuotationStatus
    stage: WorkflowStage
    revision: str
    items_count: int
    total: Decimal
    valid_until: Optional[date]
    created_at: datetime


class QuotationListData(BaseModel):
    total: int
    items: List[QuotationListItem]


class StageOut(BaseModel):
    quotation_id: int
    stage: WorkflowStage
    stored: bool


class NextRevisionOut(BaseModel):
    current: str
    kind: str
    next: str


class ConversionOut(BaseModel):
    quotation: QuotationOut
    sales_order_id: int
    created: bool
