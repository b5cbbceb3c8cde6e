"""
SQLAlchemy-backed checkpoint store
"""

from typing import Any
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pipeline.base import CheckpointStore
from models.sync_state import SyncState
from core.exceptions import CheckpointError
import logging

logger = logging.getLogger(__name__)


class SQLAlchemyCheckpointStore(CheckpointStore):
    """
    Key/value checkpoint store on the ``sync_state`` table.

    Each ``set`` commits immediately so a status written for one photo
    survives a crash while processing the next.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def get(self, key: str) -> Any:
        try:
            result = await self.db.execute(
                select(SyncState).where(SyncState.key == key)
            )
            row = result.scalar_one_or_none()
        except Exception as e:
            raise CheckpointError(
                f"Failed to read sync state '{key}'",
                context={"key": key, "operation": "read"},
                original_exception=e
            )

        return row.value if row is not None else None

    async def set(self, key: str, value: Any) -> None:
        try:
            result = await self.db.execute(
                select(SyncState).where(SyncState.key == key)
            )
            row = result.scalar_one_or_none()

            if row is None:
                self.db.add(SyncState(key=key, value=value))
            else:
                row.value = value
                row.updated_at = datetime.now(timezone.utc)

            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            raise CheckpointError(
                f"Failed to write sync state '{key}'",
                context={"key": key, "operation": "write"},
                original_exception=e
            )

        logger.debug(f"Stored sync state '{key}'")
