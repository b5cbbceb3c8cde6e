"""
SQLAlchemy ORM models for the checkpoint store.

Models:
    base: Base declarative class and shared enums (CheckpointPolicy, RunStatus)
    sync_state: Key/value rows holding the last check time and per-photo status

Usage:
    from models.base import Base, CheckpointPolicy
    from models.sync_state import SyncState
"""

__all__ = [
    "Base",
    "CheckpointPolicy",
    "RunStatus",
    "SyncState",
]
