from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal

from app.models.enums.production_status import (
    WorkOrderStatus,
    WorkOrderStepStatus,
    JourneyStatus,
    JourneyStepStatus,
    Priority,
)


class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# =====================================================
# WORK ORDERS
# =====================================================
class WorkOrderCreate(BaseModel):
    sales_order_id: int
    journey_id: Optional[int] = None
    priority: Priority = Priority.medium
    due_date: Optional[date] = None
    notes: Optional[str] = None
    # Defaults to DEFAULT_WORK_ORDER_STEPS when omitted.
    steps: Optional[List[str]] = None


class WorkOrderStatusUpdate(BaseModel):
    status: WorkOrderStatus
    version: int


class WorkOrderProgressUpdate(BaseModel):
    # Clamped into [0, 100] rather than rejected.
    progress: Decimal | str | None = None
    version: int


class WorkOrderStepUpdate(BaseModel):
    status: WorkOrderStepStatus
    assigned_worker: Optional[str] = None


class WorkOrderStepOut(ORMBase):
    id: int
    position: int
    name: str
    status: WorkOrderStepStatus
    assigned_worker: Optional[str]


class WorkOrderOut(ORMBase):
    id: int
    work_order_number: str
    sales_order_id: int
    journey_id: Optional[int]
    priority: Priority
    status: WorkOrderStatus
    progress: int
    due_date: Optional[date]
    notes: Optional[str]
    version: int
    created_at: datetime
    updated_at: Optional[datetime]
    steps: List[WorkOrderStepOut]


# =====================================================
# JOURNEYS
# =====================================================
class JourneyCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    priority: Priority = Priority.medium
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    workstation_ids: List[str] = []
    operator_ids: List[str] = []


class JourneyResourcesUpdate(BaseModel):
    workstation_ids: Optional[List[str]] = None
    operator_ids: Optional[List[str]] = None
    version: int


class JourneyStatusUpdate(BaseModel):
    status: JourneyStatus
    version: int


class JourneyStepUpdate(BaseModel):
    status: JourneyStepStatus


class JourneyStepOut(BaseModel):
    id: int
    position: int
    name: str
    description: Optional[str]
    status: JourneyStepStatus


class JourneyOut(BaseModel):
    id: int
    journey_number: str
    name: str
    description: Optional[str]
    priority: Priority
    status: JourneyStatus
    progress: int
    workstation_ids: List[str]
    operator_ids: List[str]
    start_date: Optional[date]
    end_date: Optional[date]
    total_work_orders: int
    completed_work_orders: int
    version: int
    created_at: datetime
    updated_at: Optional[datetime]
    steps: List[JourneyStepOut]


class WorkOrderListData(BaseModel):
    total: int
    items: List[WorkOrderOut]


class JourneyListData(BaseModel):
    total: int
    items: List[JourneyOut]
