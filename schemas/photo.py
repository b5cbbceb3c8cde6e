"""
Pydantic schemas for photos, per-photo publish status and post drafts
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Any
from datetime import datetime, timezone


class Photo(BaseModel):
    """
    A photo as listed by the photo source.

    Accepts Flickr's wire shape (``dateupload``, ``description._content``)
    as well as plain field names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    date_upload: int = Field(0, alias="dateupload")
    tags: str = ""
    url_o: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """Flickr ids are numeric strings, keep them as strings"""
        return str(v) if v is not None else v

    @field_validator("description", mode="before")
    @classmethod
    def unwrap_description(cls, v: Any):
        """Flickr nests the description text under ``_content``"""
        if v is None:
            return ""
        if isinstance(v, dict):
            return v.get("_content") or ""
        return v

    @field_validator("title", "tags", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v

    @property
    def uploaded_at(self) -> datetime:
        return datetime.fromtimestamp(self.date_upload, tz=timezone.utc)

    def tag_tokens(self) -> List[str]:
        """Whitespace-separated tag tokens, empty entries dropped"""
        return self.tags.split()


class PhotoStatus(BaseModel):
    """
    Durable per-photo publish outcome.

    A record with ``success=True`` marks the photo as done; any other
    record leaves it eligible for the next run.
    """

    id: str
    url_o: Optional[str] = None
    title: str = ""
    desc: str = ""
    date: int = 0
    tags: str = ""
    success: bool = False
    error: Optional[str] = None

    @classmethod
    def from_photo(cls, photo: Photo, success: bool, error: Optional[str] = None) -> "PhotoStatus":
        return cls(
            id=photo.id,
            url_o=photo.url_o,
            title=photo.title,
            desc=photo.description,
            date=photo.date_upload,
            tags=photo.tags,
            success=success,
            error=error,
        )


class PostDraft(BaseModel):
    """Post payload submitted to the publishing platform"""

    title: str
    html: str
    status: str = "published"
    tags: List[str] = Field(default_factory=list)
    feature_image: Optional[str] = None
    published_at: Optional[str] = None
