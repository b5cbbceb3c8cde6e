"""
Pydantic schemas for data validation and serialization.

Schemas:
    photo: Photo (source listing), PhotoStatus (per-photo outcome record)
           and PostDraft (publishing platform payload)

Usage:
    from schemas.photo import Photo, PhotoStatus, PostDraft

Example:
    photo = Photo.model_validate({
        "id": "53012345",
        "title": "Sunset",
        "description": {"_content": "Golden hour"},
        "dateupload": "1690000000",
        "tags": "beach sunset",
        "url_o": "https://live.staticflickr.com/65535/53012345_abc_o.jpg",
    })
    assert photo.description == "Golden hour"
    assert photo.date_upload == 1690000000
"""

__all__ = [
    "Photo",
    "PhotoStatus",
    "PostDraft",
]
