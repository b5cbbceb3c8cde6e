"""
Abstract collaborators for the sync job: photo source, publisher and checkpoint store
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Any, Optional, Dict
from schemas.photo import Photo, PhotoStatus, PostDraft


LAST_CHECK_TIME_KEY = "last_check_time"
PHOTO_STATUS_PREFIX = "photo_status"


class PhotoSource(ABC):
    """Lists photos uploaded after a given instant."""

    @abstractmethod
    async def list_photos_since(self, since: int) -> List[Photo]:
        """
        Fetch photos with an upload time at or after ``since``.

        Args:
            since: Unix timestamp (seconds)

        Returns:
            Photos in the order the source returns them
        """
        pass

    @abstractmethod
    async def download_photo(self, photo: Photo, scratch_dir: Path) -> Path:
        """Download the original image into ``scratch_dir`` and return its path"""
        pass


class Publisher(ABC):
    """
    Publishing platform contract.

    ``create_tag`` has create-if-absent semantics: creating a tag that
    already exists must not raise.
    """

    @abstractmethod
    async def upload_image(self, path: Path) -> str:
        """Upload a local image and return its hosted URL"""
        pass

    @abstractmethod
    async def list_tag_names(self) -> List[str]:
        pass

    @abstractmethod
    async def create_tag(self, name: str, slug: str) -> None:
        pass

    @abstractmethod
    async def create_post(self, post: PostDraft, source: str = "html") -> Dict[str, Any]:
        pass


class CheckpointStore(ABC):
    """
    Durable key/value store holding the last check time and per-photo status.

    Subclasses implement ``get``/``set``; the typed helpers below define the
    key layout.
    """

    @abstractmethod
    async def get(self, key: str) -> Any:
        """Return the stored value or None when the key is absent"""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        pass

    async def get_last_check_time(self) -> Optional[int]:
        value = await self.get(LAST_CHECK_TIME_KEY)
        return int(value) if value is not None else None

    async def set_last_check_time(self, timestamp: int) -> None:
        await self.set(LAST_CHECK_TIME_KEY, int(timestamp))

    async def get_photo_status(self, photo_id: str) -> Optional[PhotoStatus]:
        value = await self.get(f"{PHOTO_STATUS_PREFIX}/{photo_id}")
        if value is None:
            return None
        return PhotoStatus.model_validate(value)

    async def set_photo_status(self, status: PhotoStatus) -> None:
        await self.set(f"{PHOTO_STATUS_PREFIX}/{status.id}", status.model_dump())
