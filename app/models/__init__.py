# Engineering-to-order pipeline
from app.models.eto.quotation_models import Quotation, QuotationItem, QuotationRevision
from app.models.eto.boq_models import Boq, BoqItem
from app.models.eto.drawing_models import EngineeringDrawing, DrawingApproval, ReviewComment
from app.models.eto.sales_order_models import SalesOrder, SalesOrderItem

# Production
from app.models.production.journey_models import ProductionJourney, JourneyStep
from app.models.production.work_order_models import ProductionWorkOrder, WorkOrderStep

# Support
from app.models.support.activity_models import ActivityLog
