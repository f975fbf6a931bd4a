import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import async_sessionmaker
from core.config import settings
from core.database import async_session_maker
from ingestion.runner import SyncRunner
from ingestion.extractors.search_client import SearchStoreClient

logger = logging.getLogger(__name__)


class SyncScheduler:
    def __init__(
        self,
        session_factory: async_sessionmaker = async_session_maker,
        interval_minutes: int = settings.SYNC_INTERVAL_MINUTES
    ):
        self.scheduler = AsyncIOScheduler()
        self.session_factory = session_factory
        self.interval_minutes = interval_minutes
        self.last_summary: Optional[dict] = None

    async def run_sync_job(self):
        """Job to run one incremental sync"""
        logger.info("Scheduler: Starting sync job")
        try:
            async with SearchStoreClient() as client:
                runner = SyncRunner(client, self.session_factory)
                self.last_summary = await runner.run()
        except Exception as e:
            # The next tick rescans whatever was left unfinished
            logger.error(f"Scheduler: Sync job failed - {e}")

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_sync_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="sync_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"Sync Scheduler started (every {self.interval_minutes} minutes)")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Sync Scheduler stopped")
