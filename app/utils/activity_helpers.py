import logging

from sqlalchemy.ext.asyncio import AsyncSession
from app.models.support.activity_models import ActivityLog
from app.constants.activity_templates import ACTIVITY_TEMPLATES
from app.constants.activity_codes import ActivityCode

logger = logging.getLogger(__name__)


async def emit_activity(
    db: AsyncSession,
    *,
    actor: str,
    code: ActivityCode,
    **context,
):
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        message = template.format(actor=actor, **context)
    except KeyError as e:
        raise ValueError(f"Missing activity context key: {e.args[0]} for {code}")

    logger.info(message)
    db.add(ActivityLog(actor=actor, code=code.value, message=message))
