# app/models/enums/sales_order_status.py
import enum


class SalesOrderStatus(str, enum.Enum):
    confirmed = "confirmed"
    in_production = "in_production"
    completed = "completed"
    cancelled = "cancelled"
