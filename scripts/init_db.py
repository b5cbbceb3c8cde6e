import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from core.config import settings
from models.base import Base
# Import all models to ensure they are registered
from models.sync_state import SyncState
from pipeline.checkpoint import SQLAlchemyCheckpointStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init_database():
    logger.info("Connecting to database...")
    engine = create_async_engine(settings.DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        logger.info("Creating tables...")
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created successfully.")

    # Seed the checkpoint so the first run has a defined window
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        store = SQLAlchemyCheckpointStore(session)
        if await store.get_last_check_time() is None:
            await store.set_last_check_time(settings.INITIAL_CHECK_TIME)
            logger.info(f"Seeded last_check_time={settings.INITIAL_CHECK_TIME}")
        else:
            logger.info("Checkpoint already present, leaving it unchanged")

    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(init_database())
