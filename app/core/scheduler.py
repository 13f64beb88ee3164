import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.core.db import AsyncSessionLocal

from app.services.eto.quotation_expiry_service import auto_expire_quotations

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


@scheduler.scheduled_job("cron", hour=0, minute=5)  # daily at 00:05
async def expire_quotations_job():
    async with AsyncSessionLocal() as db:
        try:
            await auto_expire_quotations(db)
        except Exception:
            await db.rollback()
            logger.exception("Quotation expiry job failed")
            raise
