from datetime import date
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.eto.quotation_models import Quotation
from app.utils.activity_helpers import emit_activity
from app.constants.activity_codes import ActivityCode
from app.services.eto.quotation_expiry_core import _expire_quotation_stmt

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


async def auto_expire_quotations(db: AsyncSession, today: date | None = None) -> int:
    today = today or date.today()

    stmt = _expire_quotation_stmt(
        extra_where=[
            Quotation.valid_until.isnot(None),
            Quotation.valid_until < today,
        ],
        updated_by=SYSTEM_ACTOR,
    )

    result = await db.execute(stmt)
    expired = result.scalars().all()

    if not expired:
        return 0

    for q in expired:
        await emit_activity(
            db,
            actor=SYSTEM_ACTOR,
            code=ActivityCode.EXPIRE_QUOTATION,
            target_name=q.quotation_number,
            changes=f"Expired automatically on {today}",
        )

    await db.commit()
    logger.info("Expired %d quotations past validity", len(expired))
    return len(expired)
