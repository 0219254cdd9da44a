"""
Background Scheduler Service
Runs the external data ingestion once at startup and then at the top
of every hour.
"""

from datetime import datetime, timezone

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from services.exceptions import IngestionAlreadyRunning, StoreUnavailableError
from services.ingestion import IngestionRunner

logger = structlog.get_logger(__name__)

JOB_ID = "fetch_external_data"


class SchedulerService:
    """Owns the single APScheduler timer that drives ingestion"""

    def __init__(self, runner: IngestionRunner, scheduler: AsyncIOScheduler = None):
        self.runner = runner
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self.is_running = False

    def start(self):
        """Start the APScheduler instance and schedule the hourly fetch."""
        if self.is_running:
            return
        self.scheduler.add_job(
            self.fetch_external_data,
            CronTrigger(minute=0, timezone=timezone.utc),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),  # run immediately on startup
        )
        self.scheduler.start()
        self.is_running = True
        logger.info("Background scheduler started")

    def shutdown(self):
        """Shutdown the scheduler without waiting for a running fetch."""
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Background scheduler stopped")

    def next_run_time(self):
        job = self.scheduler.get_job(JOB_ID) if self.is_running else None
        return job.next_run_time if job else None

    async def fetch_external_data(self):
        """Scheduled job body; failures wait for the next tick."""
        logger.info("Job: fetching external data")
        try:
            report = await self.runner.run_ingestion()
            logger.info(
                "Job finished",
                readings_stored=report.readings_stored,
                alerts_created=report.alerts_created,
            )
        except IngestionAlreadyRunning:
            logger.info("Job skipped, ingestion already running")
        except StoreUnavailableError as e:
            logger.error("Job failed, store unavailable", error=str(e))
        except Exception as e:
            logger.error("Job failed: fetch_external_data", error=str(e), exc_info=True)
