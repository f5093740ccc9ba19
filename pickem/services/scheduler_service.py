"""
Weekly Pick'em Results Scheduler Service

Runs the results ingestion job in the background using APScheduler.
"""

import atexit
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from pickem.errors import PickemError, SyncAlreadyRunning
from pickem.utils.timezone_utils import get_app_timezone

logger = logging.getLogger(__name__)

RESULTS_JOB_ID = "update_game_results"


class SchedulerService:
    """Manages the background schedule for result updates"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app
        self.scheduler = BackgroundScheduler(
            daemon=True, timezone=get_app_timezone(app.config.get("TIMEZONE", "UTC"))
        )

        # Register shutdown
        atexit.register(self.shutdown)

        # Start scheduler if enabled
        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    @property
    def results_sync(self):
        return self.app.extensions["results_sync"]

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            # Clear any existing jobs
            self.scheduler.remove_all_jobs()

            self._add_core_jobs()

            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        """Add the twice-weekly results update"""
        days = self.app.config.get("RESULTS_SYNC_DAYS", "tue,fri")
        hour = self.app.config.get("RESULTS_SYNC_HOUR", 8)

        self.scheduler.add_job(
            func=self._scheduled_results_update,
            trigger=CronTrigger(day_of_week=days, hour=hour, minute=0),
            id=RESULTS_JOB_ID,
            name="Update Game Results",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )

        logger.info(f"Results update scheduled for {days} at {hour:02d}:00")

    def _scheduled_results_update(self):
        """Scheduled run of the results ingestion job"""
        with self.app.app_context():
            logger.info("Running scheduled game update")
            try:
                summary = self.results_sync.update_game_results()
                logger.info(f"Scheduled game update completed: {summary}")
            except SyncAlreadyRunning:
                logger.warning("Skipping scheduled game update: a run is already in progress")
            except PickemError as e:
                logger.error(f"Scheduled game update failed: {e.message}")
            except Exception as e:
                logger.error(f"Error during scheduled game update: {e}", exc_info=True)

    def get_status(self, results_sync=None):
        """Get scheduler status information"""
        if results_sync is None and self.app is not None:
            results_sync = self.results_sync

        jobs = []
        if self.scheduler and self.is_running:
            for job in self.scheduler.get_jobs():
                next_run = job.next_run_time
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        stats = dict(results_sync.sync_stats) if results_sync else {}
        if stats.get("last_sync"):
            stats["last_sync"] = stats["last_sync"].isoformat()

        return {
            "is_running": self.is_running,
            "sync_in_progress": results_sync.is_running if results_sync else False,
            "jobs": jobs,
            "stats": stats,
        }


# Global scheduler instance
scheduler_service = SchedulerService()
