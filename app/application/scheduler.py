"""
Background scheduler - runs periodic jobs inside the FastAPI process.

Jobs:
  - Notification cleanup (daily 03:00 UTC): archived notifications older
    than NOTIFICATION_RETENTION_DAYS
  - Occurrence generation (1st of month, 00:05 in TIMEZONE): occurrences of
    recurring expenses for every user for the new month
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import get_settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def _run_notification_cleanup():
    from app.infrastructure.db.session import get_session_factory
    from app.application.notifications import cleanup_old_notifications

    Session = get_session_factory()
    db = Session()
    try:
        removed = cleanup_old_notifications(db, days_old=get_settings().NOTIFICATION_RETENTION_DAYS)
        logger.info("Notification cleanup: %d removed", removed)
    except Exception:
        logger.exception("Notification cleanup job failed")
    finally:
        db.close()


def _run_occurrence_generation():
    from app.infrastructure.db.session import get_session_factory
    from app.application.occurrences import generate_for_all_users
    from app.domain.period import current_year_month

    Session = get_session_factory()
    db = Session()
    try:
        year, month = current_year_month(get_settings().TIMEZONE)
        generate_for_all_users(db, year, month)
    except Exception:
        logger.exception("Occurrence generation job failed")
    finally:
        db.close()


def start_scheduler():
    """Start the background scheduler with all periodic jobs."""
    settings = get_settings()

    scheduler.add_job(
        _run_notification_cleanup,
        CronTrigger(hour=3, minute=0),
        id="notification_cleanup",
        replace_existing=True,
    )

    scheduler.add_job(
        _run_occurrence_generation,
        CronTrigger(day=1, hour=0, minute=5, timezone=settings.TIMEZONE),
        id="occurrence_generation",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(
        "Scheduler started: notification_cleanup (03:00 UTC), "
        "occurrence_generation (1st of month 00:05 %s)", settings.TIMEZONE
    )


def shutdown_scheduler():
    """Gracefully stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
