"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from models.base import Base
from models.sync_state import SyncState  # noqa: F401  registers the table
from pipeline.base import PhotoSource, Publisher, CheckpointStore
from schemas.photo import Photo, PostDraft

# Fixed "now" for window tests: 2024-01-16T06:00:00Z
NOW = datetime(2024, 1, 16, 6, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# In-memory collaborators
# ============================================================================

class InMemoryCheckpointStore(CheckpointStore):
    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data = dict(data or {})
        self.writes: List[str] = []

    async def get(self, key: str) -> Any:
        return self.data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.writes.append(key)
        self.data[key] = value


class FakePhotoSource(PhotoSource):
    def __init__(self, photos: List[Photo], fail_download: Optional[Dict[str, Exception]] = None):
        self.photos = photos
        self.fail_download = fail_download or {}
        self.list_calls: List[int] = []
        self.downloaded: List[Path] = []

    async def list_photos_since(self, since: int) -> List[Photo]:
        self.list_calls.append(since)
        return [p for p in self.photos if p.date_upload >= since]

    async def download_photo(self, photo: Photo, scratch_dir: Path) -> Path:
        if photo.id in self.fail_download:
            raise self.fail_download[photo.id]
        path = Path(scratch_dir) / f"{photo.id}_o.jpg"
        path.write_bytes(b"\xff\xd8\xff" + photo.id.encode())
        self.downloaded.append(path)
        return path


class FakePublisher(Publisher):
    def __init__(self, existing_tags: Optional[List[str]] = None, fail_upload: Optional[Dict[str, Exception]] = None):
        self.tags = list(existing_tags or [])
        self.fail_upload = fail_upload or {}
        self.uploaded: List[str] = []
        self.created_tags: List[str] = []
        self.posts: List[PostDraft] = []

    async def upload_image(self, path: Path) -> str:
        path = Path(path)
        assert path.exists(), "image must still be on disk while uploading"
        for photo_id, error in self.fail_upload.items():
            if path.name.startswith(photo_id):
                raise error
        self.uploaded.append(path.name)
        return f"https://blog.example.com/content/images/{path.name}"

    async def list_tag_names(self) -> List[str]:
        return list(self.tags)

    async def create_tag(self, name: str, slug: str) -> None:
        if name not in self.tags:
            self.tags.append(name)
        self.created_tags.append(name)

    async def create_post(self, post: PostDraft, source: str = "html") -> Dict[str, Any]:
        assert source == "html"
        self.posts.append(post)
        return {"id": f"post-{len(self.posts)}", "title": post.title}


# ============================================================================
# Fixtures
# ============================================================================

def make_photo(photo_id: str, uploaded: int, tags: str = "", title: Optional[str] = None) -> Photo:
    return Photo.model_validate({
        "id": photo_id,
        "title": title or f"Photo {photo_id}",
        "description": {"_content": f"Description of {photo_id}"},
        "dateupload": str(uploaded),
        "tags": tags,
        "url_o": f"https://live.staticflickr.com/65535/{photo_id}_abcdef_o.jpg",
    })


@pytest.fixture
def mock_flickr_photos():
    """Flickr people.getPhotos records"""
    return [
        {
            "id": "53001",
            "owner": "12345678@N00",
            "title": "Morning beach",
            "description": {"_content": "Low tide at dawn"},
            "dateupload": "1705305600",
            "tags": "beach sunrise",
            "url_o": "https://live.staticflickr.com/65535/53001_aaaa_o.jpg",
        },
        {
            "id": "53002",
            "owner": "12345678@N00",
            "title": "City lights",
            "description": {"_content": ""},
            "dateupload": "1705309200",
            "tags": "",
            "url_o": "https://live.staticflickr.com/65535/53002_bbbb_o.jpg",
        },
    ]


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """File-backed SQLite engine with the schema created"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'sync_state.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncSession:
    """Create database session for tests"""
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        yield session
