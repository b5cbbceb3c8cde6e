"""
Custom exceptions for the photo sync job with structured error context.

Every exception carries context information for debugging and for the
per-photo status records written to the checkpoint store.

Exception Hierarchy:
    SyncException (base)
    ├── PhotoSourceError
    │   ├── AuthenticationError
    │   └── NetworkError
    ├── DownloadError
    ├── PublishError
    │   ├── ImageUploadError
    │   ├── TagError
    │   └── PostCreationError
    └── CheckpointError

Run-aborting errors (PhotoSourceError, CheckpointError) propagate out of the
job. Download and publish errors are captured per photo.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class SyncException(Exception):
    """
    Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (photo id, url, status code, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Photo Source Errors
# ============================================================================

class PhotoSourceError(SyncException):
    """
    Exception raised when listing photos from the photo source fails.

    Context should include:
        - api_url: The endpoint that failed
        - status_code: HTTP status code (if applicable)
        - flickr_code: Flickr API error code (if applicable)
        - page: Result page being fetched
    """
    pass


class AuthenticationError(PhotoSourceError):
    """Invalid API key or user id (HTTP 401/403, Flickr codes 98 and 100)."""
    pass


class NetworkError(PhotoSourceError):
    """Transport-level failure (timeout, connection refused, 5xx)."""
    pass


# ============================================================================
# Download Errors
# ============================================================================

class DownloadError(SyncException):
    """
    Exception raised when downloading an original image fails.

    Context should include:
        - url: The image URL
        - destination: Local path being written
        - status_code: HTTP status code (if applicable)
    """
    pass


# ============================================================================
# Publish Errors
# ============================================================================

class PublishError(SyncException):
    """
    Base exception for publishing platform failures.

    Context should include:
        - endpoint: Admin API endpoint
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated)
    """
    pass


class ImageUploadError(PublishError):
    """Exception raised when an image upload is rejected or returns no URL."""
    pass


class TagError(PublishError):
    """Exception raised when listing or creating tags fails."""
    pass


class PostCreationError(PublishError):
    """Exception raised when a post cannot be created."""
    pass


# ============================================================================
# Checkpoint Errors
# ============================================================================

class CheckpointError(SyncException):
    """
    Exception raised when the checkpoint store cannot be read or written.

    Context should include:
        - key: The store key
        - operation: Operation that failed (read, write)
    """
    pass
