# app/models/enums/quotation_status.py
import enum


class QuotationStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    under_review = "under_review"
    customer_review = "customer_review"
    negotiation = "negotiation"
    approved = "approved"
    completed = "completed"
    rejected = "rejected"
    expired = "expired"


# Statuses in which the customer still holds the quotation.
AWAITING_CUSTOMER_STATUSES = (
    QuotationStatus.sent,
    QuotationStatus.under_review,
    QuotationStatus.customer_review,
    QuotationStatus.negotiation,
)

EDITABLE_STATUSES = (QuotationStatus.draft,) + AWAITING_CUSTOMER_STATUSES


class QuotationItemCategory(str, enum.Enum):
    engineering = "engineering"
    material = "material"
    labor = "labor"
    overhead = "overhead"
    margin = "margin"


class RevisionAction(str, enum.Enum):
    draft = "draft"
    update = "update"
    send = "send"


class CustomerDecision(str, enum.Enum):
    under_review = "under_review"
    negotiation = "negotiation"
    approved = "approved"
    rejected = "rejected"
