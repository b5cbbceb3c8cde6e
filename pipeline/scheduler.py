import logging
import asyncio
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from core.config import settings
from core.logging import setup_logging
from pipeline.runner import SyncJob
from pipeline.checkpoint import SQLAlchemyCheckpointStore
from pipeline.sources.flickr import FlickrPhotoSource
from pipeline.publishers.ghost import GhostPublisher

logger = logging.getLogger(__name__)


class SyncScheduler:
    def __init__(self, interval_minutes: int = None):
        self.interval_minutes = interval_minutes or settings.SYNC_INTERVAL_MINUTES
        self.scheduler = AsyncIOScheduler()
        self.engine = create_async_engine(settings.DATABASE_URL, echo=False)
        self.SessionLocal = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    def build_job(self, session: AsyncSession) -> SyncJob:
        return SyncJob(
            photo_source=FlickrPhotoSource(),
            publisher=GhostPublisher(),
            store=SQLAlchemyCheckpointStore(session),
        )

    async def run_sync_job(self):
        """Job to run one sync pass; failures are logged, never raised"""
        logger.info("Scheduler: Starting photo sync")
        async with self.SessionLocal() as session:
            try:
                result = await self.build_job(session).run()
                logger.info(
                    f"Scheduler: Photo sync finished ({result['status']}, "
                    f"published={result['published']}, failed={result['failed']})"
                )
            except Exception as e:
                logger.error(f"Scheduler: Photo sync failed - {e}")

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_sync_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id="photo_sync",
            replace_existing=True,
            max_instances=1,  # single-flight: overlapping runs are never started
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Sync Scheduler started (every {self.interval_minutes} minutes)")

    async def stop(self):
        self.scheduler.shutdown()
        await self.engine.dispose()
        logger.info("Sync Scheduler stopped")


async def main():
    setup_logging()
    scheduler = SyncScheduler()
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
