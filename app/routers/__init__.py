# app/routers/__init__.py

from .eto.quotation_router import router as quotation_router
from .eto.boq_router import router as boq_router
from .eto.drawing_router import router as drawing_router
from .eto.sales_order_router import router as sales_order_router

from .production.work_order_router import router as work_order_router
from .production.journey_router import router as journey_router

from .support.activity_router import router as activity_router


__all__ = [
"quotation_router",
"boq_router",
"drawing_router",
"sales_order_router",

"work_order_router",
"journey_router",

"activity_router",
]
