"""
Core utilities and configuration for the photo sync job.

Modules:
    config: Application configuration and environment variable management
    database: Async SQLAlchemy engine and session factory for the checkpoint store
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import async_session_maker
    from core.exceptions import PublishError, CheckpointError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "async_session_maker",
    "setup_logging",
    # Exceptions
    "SyncException",
    "PhotoSourceError",
    "AuthenticationError",
    "NetworkError",
    "DownloadError",
    "PublishError",
    "ImageUploadError",
    "TagError",
    "PostCreationError",
    "CheckpointError",
]
