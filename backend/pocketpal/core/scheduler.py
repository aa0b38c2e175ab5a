"""
Background scheduler for the monthly auto snapshots.

Uses APScheduler to record last month's balances for every onboarded user
on the first day of each month, so users who do not log in still get a
data point. The job runs the same idempotent generator as the session load.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

import pytz
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pocketpal.core.config import settings
from pocketpal.core.database import SessionLocal
from pocketpal.core.timezone import today_local

logger = logging.getLogger(__name__)


def run_snapshots_for_all_users(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
    """Generate auto snapshots for every onboarded user, one commit per user."""
    from pocketpal.modules.profiles.models import Profile
    from pocketpal.modules.snapshots.services import generate_auto_snapshots

    today = today or today_local()
    owner_ids = [
        row.id for row in db.query(Profile.id).filter(Profile.onboarding_completed.is_(True)).all()
    ]

    done = 0
    failed = 0
    for owner_id in owner_ids:
        try:
            generate_auto_snapshots(db, owner_id, today)
            db.commit()
            done += 1
        except SQLAlchemyError as e:
            db.rollback()
            failed += 1
            logger.error(f"Scheduled snapshot failed for user {owner_id}: {e}", exc_info=True)

    logger.info(f"Scheduled snapshots: {done} users done, {failed} failed")
    return {"users": len(owner_ids), "done": done, "failed": failed}


class SnapshotScheduler:
    """Owns the BackgroundScheduler and the monthly job."""

    def __init__(self):
        self.timezone = pytz.timezone(settings.TIMEZONE)
        self.scheduler = BackgroundScheduler(timezone=self.timezone)
        self.scheduler.start()
        logger.info("Snapshot scheduler started")

    def setup_schedules(self):
        # Day 1 of every month at 03:00 local time
        self.scheduler.add_job(
            self.run_monthly_snapshots,
            trigger=CronTrigger(day=1, hour=3, minute=0, timezone=self.timezone),
            id='monthly_auto_snapshots',
            name='Monthly auto snapshots (day 1, 03:00)',
            replace_existing=True,
        )

    def run_monthly_snapshots(self):
        db: Session = SessionLocal()
        try:
            logger.info("Running monthly auto snapshots...")
            run_snapshots_for_all_users(db)
        except Exception as e:
            logger.error(f"Error in monthly auto snapshots: {e}", exc_info=True)
        finally:
            db.close()

    def shutdown(self):
        self.scheduler.shutdown()
        logger.info("Snapshot scheduler stopped")


# Global scheduler instance
_scheduler: Optional[SnapshotScheduler] = None


def start_scheduler():
    """Start the snapshot scheduler (once)."""
    global _scheduler
    if _scheduler is None:
        _scheduler = SnapshotScheduler()
        _scheduler.setup_schedules()
        logger.info("Snapshot scheduler started and configured")
    else:
        logger.info("Snapshot scheduler already running")


def stop_scheduler():
    global _scheduler
    if _scheduler:
        _scheduler.shutdown()
        _scheduler = None
