"""
Script to run a single photo sync pass (manual trigger)
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import engine, async_session_maker
from core.logging import setup_logging
from pipeline.runner import SyncJob
from pipeline.checkpoint import SQLAlchemyCheckpointStore
from pipeline.sources.flickr import FlickrPhotoSource
from pipeline.publishers.ghost import GhostPublisher

logger = logging.getLogger(__name__)


async def run_sync():
    """Run one sync pass against the configured Flickr account and Ghost site"""
    try:
        async with async_session_maker() as session:
            job = SyncJob(
                photo_source=FlickrPhotoSource(),
                publisher=GhostPublisher(),
                store=SQLAlchemyCheckpointStore(session),
            )
            result = await job.run()

            logger.info(
                f"Sync completed: Found={result['photos_found']}, "
                f"Published={result['published']}, "
                f"Skipped={result['skipped']}, "
                f"Failed={result['failed']}"
            )
            for detail in result.get("error_details", []):
                logger.warning(f"  {detail['photo_id']}: {detail['error_message']}")

    except Exception as e:
        logger.error(f"Sync run aborted: {str(e)}")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(run_sync())
