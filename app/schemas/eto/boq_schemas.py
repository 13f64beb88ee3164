from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from app.models.enums.boq_status import BoqCategory, EtoStatus


# ==============================
# ITEM SCHEMAS
# ==============================
class BoqItemCreate(BaseModel):
    description: str = Field(min_length=1)
    unit: Optional[str] = None
    category: BoqCategory = BoqCategory.material
    quantity: Decimal = Field(ge=0)
    unit_rate: Decimal = Field(ge=0)
    remarks: Optional[str] = None


class BoqItemUpdate(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1)
    unit: Optional[str] = None
    category: Optional[BoqCategory] = None
    quantity: Optional[Decimal] = Field(default=None, ge=0)
    unit_rate: Optional[Decimal] = Field(default=None, ge=0)
    remarks: Optional[str] = None

    # optimistic locking on the parent BOQ
    version: int


class BoqItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    position: int
    description: str
    unit: Optional[str]
    category: BoqCategory
    quantity: Decimal
    unit_rate: Decimal
    total_amount: Decimal
    remarks: Optional[str]


# ==============================
# BOQ INPUT SCHEMAS
# ==============================
class BoqCreate(BaseModel):
    quotation_id: int
    notes: Optional[str] = None
    items: List[BoqItemCreate] = []


class EtoStatusUpdate(BaseModel):
    eto_status: EtoStatus
    version: int


# ==============================
# BOQ OUTPUT SCHEMAS
# ==============================
class BoqOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    boq_number: str
    quotation_id: int
    notes: Optional[str]

    material_cost: Decimal
    labor_cost: Decimal
    equipment_cost: Decimal
    subcontract_cost: Decimal
    other_cost: Decimal
    total_cost: Decimal

    eto_status: EtoStatus
    engineering_progress: int

    version: int
    created_by: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    items: List[BoqItemOut]
