# app/models/enums/workflow_stage.py
import enum


class WorkflowStage(str, enum.Enum):
    draft = "draft"
    engineering = "engineering"
    boq_pending = "boq_pending"
    ready_to_send = "ready_to_send"
    customer_review = "customer_review"
    po_received = "po_received"
    completed = "completed"
