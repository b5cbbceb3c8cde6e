"""
Flickr photo source.

Lists a user's photos through the Flickr REST API and downloads originals:
- ``flickr.people.getPhotos`` filtered by ``min_upload_date``
- Pagination over ``photos.pages``, bounded by ``max_pages``
- Flickr ``stat: fail`` payloads and HTTP failures mapped to custom exceptions
- Streaming download of the ``url_o`` original into a scratch directory
"""

import httpx
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Dict, Any, Optional
from urllib.parse import urlparse
from pydantic import ValidationError
from pipeline.base import PhotoSource
from schemas.photo import Photo
from core.config import settings
from core.exceptions import (
    PhotoSourceError,
    AuthenticationError,
    NetworkError,
    DownloadError
)
import logging

logger = logging.getLogger(__name__)

# Metadata needed to build a post, requested in the same listing call
PHOTO_EXTRAS = "description,date_upload,original_format,geo,tags,o_dims,media,url_o"

# Flickr "Invalid auth token" / "Invalid API Key"
FLICKR_AUTH_ERROR_CODES = {98, 100}

CONTENT_TYPE_PHOTOS_ONLY = 1


class FlickrPhotoSource(PhotoSource):
    """
    Photo source backed by the Flickr REST API.

    Attributes:
        api_key: Flickr API key
        user_id: NSID of the account whose uploads are synced
        page_size: ``per_page`` for each listing request (Flickr caps it at 500)
        max_pages: Upper bound on pages fetched in one run
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        user_id: Optional[str] = None,
        api_url: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key or settings.FLICKR_API_KEY
        self.user_id = user_id or settings.FLICKR_USER_ID
        self.api_url = api_url or settings.FLICKR_API_URL
        self.page_size = page_size or settings.FLICKR_PAGE_SIZE
        self.max_pages = max_pages or settings.FLICKR_MAX_PAGES
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self._client = client

    @asynccontextmanager
    async def _http(self):
        """Yield the injected client, or a short-lived one"""
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                yield client

    def _build_params(self, since: int, page: int) -> Dict[str, Any]:
        return {
            "method": "flickr.people.getPhotos",
            "api_key": self.api_key,
            "user_id": self.user_id,
            "extras": PHOTO_EXTRAS,
            "per_page": self.page_size,
            "page": page,
            "content_type": CONTENT_TYPE_PHOTOS_ONLY,
            "min_upload_date": since,
            "format": "json",
            "nojsoncallback": 1,
        }

    async def _fetch_page(self, client: httpx.AsyncClient, since: int, page: int) -> Dict[str, Any]:
        """
        Fetch one listing page and return the ``photos`` envelope.

        Raises:
            AuthenticationError: For rejected credentials
            NetworkError: For timeouts, connection failures and 5xx responses
            PhotoSourceError: For any other API failure
        """
        context = {"api_url": self.api_url, "user_id": self.user_id, "page": page}

        try:
            response = await client.get(self.api_url, params=self._build_params(since, page))
        except httpx.TransportError as e:
            raise NetworkError(
                "Failed to reach Flickr",
                context=context,
                original_exception=e
            )

        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Flickr rejected the request credentials",
                context={**context, "status_code": response.status_code}
            )

        if response.status_code >= 500:
            raise NetworkError(
                f"Flickr server error {response.status_code}",
                context={
                    **context,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]
                }
            )

        if response.status_code >= 400:
            raise PhotoSourceError(
                f"Flickr returned HTTP {response.status_code}",
                context={
                    **context,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]
                }
            )

        try:
            data = response.json()
        except ValueError as e:
            raise PhotoSourceError(
                "Failed to parse Flickr response",
                context={**context, "response_body": response.text[:500]},
                original_exception=e
            )

        if data.get("stat") != "ok":
            code = data.get("code")
            error_cls = AuthenticationError if code in FLICKR_AUTH_ERROR_CODES else PhotoSourceError
            raise error_cls(
                f"Flickr API error: {data.get('message', 'unknown error')}",
                context={**context, "flickr_code": code}
            )

        return data.get("photos") or {}

    async def list_photos_since(self, since: int) -> List[Photo]:
        """
        List photos uploaded at or after ``since``, following pagination.

        Args:
            since: Unix timestamp (seconds) passed as ``min_upload_date``

        Returns:
            Photos in Flickr's order, across all pages
        """
        photos: List[Photo] = []
        page = 1

        async with self._http() as client:
            while True:
                logger.debug(f"Fetching Flickr page {page} (min_upload_date={since})")
                envelope = await self._fetch_page(client, since, page)

                for record in envelope.get("photo", []):
                    try:
                        photos.append(Photo.model_validate(record))
                    except ValidationError as e:
                        raise PhotoSourceError(
                            "Malformed photo record in Flickr response",
                            context={"page": page, "record_id": record.get("id")},
                            original_exception=e
                        )

                total_pages = int(envelope.get("pages") or 1)
                if page >= total_pages:
                    break

                if page >= self.max_pages:
                    logger.warning(
                        f"Stopping after {self.max_pages} pages of {total_pages}; "
                        f"remaining photos are picked up by later runs"
                    )
                    break

                page += 1

        logger.info(f"Fetched {len(photos)} photos from Flickr ({page} pages)")
        return photos

    async def download_photo(self, photo: Photo, scratch_dir: Path) -> Path:
        """
        Stream the original image to ``<scratch_dir>/<basename of url_o>``.

        A partially written file is removed before the error propagates.
        """
        if not photo.url_o:
            raise DownloadError(
                f"Photo {photo.id} has no original-size URL",
                context={"photo_id": photo.id}
            )

        filename = os.path.basename(urlparse(photo.url_o).path) or f"{photo.id}.jpg"
        destination = Path(scratch_dir) / filename
        context = {"photo_id": photo.id, "url": photo.url_o, "destination": str(destination)}

        try:
            async with self._http() as client:
                async with client.stream("GET", photo.url_o) as response:
                    if response.status_code >= 400:
                        raise DownloadError(
                            f"Image download returned HTTP {response.status_code}",
                            context={**context, "status_code": response.status_code}
                        )
                    with open(destination, "wb") as fh:
                        async for chunk in response.aiter_bytes():
                            fh.write(chunk)
        except DownloadError:
            destination.unlink(missing_ok=True)
            raise
        except (httpx.HTTPError, OSError) as e:
            destination.unlink(missing_ok=True)
            raise DownloadError(
                f"Failed to download image for photo {photo.id}",
                context=context,
                original_exception=e
            )

        return destination
