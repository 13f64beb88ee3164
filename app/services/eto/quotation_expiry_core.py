from datetime import datetime, timezone

from sqlalchemy import update
from app.models.eto.quotation_models import Quotation
from app.models.enums.quotation_status import QuotationStatus, AWAITING_CUSTOMER_STATUSES


def _expire_quotation_stmt(extra_where=None, updated_by=None):
    where_clause = [
        Quotation.status.in_(AWAITING_CUSTOMER_STATUSES),
        Quotation.po_received.is_(False),
        Quotation.converted_to_so.is_(False),
        Quotation.is_deleted.is_(False),
    ]

    if extra_where is not None:
        where_clause.extend(extra_where)

    return (
        update(Quotation)
        .where(*where_clause)
        .values(
            status=QuotationStatus.expired,
            version=Quotation.version + 1,
            updated_by=updated_by,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(Quotation)
    )
