from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from app.models.enums.quotation_status import QuotationItemCategory
from app.models.enums.sales_order_status import SalesOrderStatus


class SalesOrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    position: int
    description: str
    unit: Optional[str]
    category: QuotationItemCategory
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal


class SalesOrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    so_number: str
    quotation_id: int
    customer_name: str
    customer_po: str
    payment_terms: str
    delivery_terms: Optional[str]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    status: SalesOrderStatus
    created_by: Optional[str]
    created_at: datetime
    items: List[SalesOrderItemOut]


class SalesOrderListData(BaseModel):
    total: int
    items: List[SalesOrderOut]
