"""
Scheduler for Matchmaker CRM background jobs
- Paid traffic reconciliation every RECONCILE_INTERVAL_MINUTES
- Expired session cleanup every night at 03:00
"""

import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from config import db, now_iso, RECONCILE_INTERVAL_MINUTES

logger = logging.getLogger("scheduler")


class TaskScheduler:
    """Scheduled jobs manager"""

    def __init__(self, reconcile_interval_minutes: int = RECONCILE_INTERVAL_MINUTES):
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.reconcile_interval_minutes = reconcile_interval_minutes

    def start(self):
        """Register every job and start the scheduler"""
        self.scheduler.add_job(
            self.reconcile_paid_traffic,
            IntervalTrigger(minutes=self.reconcile_interval_minutes),
            id="reconcile_paid_traffic",
            name="Paid traffic reconciliation",
            replace_existing=True
        )

        self.scheduler.add_job(
            self.purge_expired_sessions,
            CronTrigger(hour=3, minute=0),
            id="purge_expired_sessions",
            name="Expired sessions cleanup",
            replace_existing=True
        )

        self.scheduler.start()
        logger.info(f"Scheduler started (reconcile every {self.reconcile_interval_minutes} min)")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")

    # ==================== SCHEDULED JOBS ====================

    async def reconcile_paid_traffic(self):
        """Repair leads whose accepted payment did not promote them to paid."""
        from services.payment_workflow import reconcile_paid_traffic

        try:
            result = await reconcile_paid_traffic()
            if result["repaired"]:
                logger.warning(f"[RECONCILE] {result['repaired']} lead(s) promoted to paid")
            return result
        except Exception as e:
            logger.error(f"[RECONCILE] job failed: {str(e)}")
            return None

    async def purge_expired_sessions(self):
        """Delete sessions past their expiry date"""
        try:
            result = await db.sessions.delete_many({"expires_at": {"$lt": now_iso()}})
            if result.deleted_count:
                logger.info(f"[SESSIONS] {result.deleted_count} expired session(s) purged")
            return result.deleted_count
        except Exception as e:
            logger.error(f"[SESSIONS] cleanup failed: {str(e)}")
            return None


# Global instance
task_scheduler = TaskScheduler()
