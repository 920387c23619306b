"""
Background scheduler for periodic maintenance.

Uses APScheduler to refresh incomplete book metadata once a night.
"""
import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from sylvia.database import SessionLocal
from sylvia.services.book_backfill import backfill_books
from sylvia.services.catalog import GoogleBooksClient

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[BackgroundScheduler] = None


def backfill_job(catalog: GoogleBooksClient) -> None:
    """Scheduled job: refresh books missing language or publication date."""
    logger.info("Running nightly book backfill job")

    db: Session = SessionLocal()
    try:
        result = backfill_books(db, catalog)
        logger.info("Backfill job completed: updated=%d skipped=%d", result.updated, result.skipped)
    except Exception:
        db.rollback()
        logger.exception("Backfill job failed")
    finally:
        db.close()


def start_scheduler(catalog: GoogleBooksClient, hour: int = 3) -> BackgroundScheduler:
    """
    Start the background scheduler with the backfill job.
    Call this from the FastAPI startup event.
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already running")
        return scheduler

    logger.info("Starting background scheduler")
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        backfill_job,
        trigger=CronTrigger(hour=hour, minute=0),
        args=[catalog],
        id="nightly_book_backfill",
        name="Refresh incomplete book metadata",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Background scheduler started (backfill at %02d:00 UTC)", hour)
    return scheduler


def stop_scheduler() -> None:
    global scheduler

    if scheduler is None:
        return
    scheduler.shutdown(wait=False)
    scheduler = None
    logger.info("Background scheduler stopped")
