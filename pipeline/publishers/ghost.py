"""
Ghost Admin API publisher.

Authenticates with a short-lived JWT signed from the Admin API key and
implements the publisher contract:
- Image upload (multipart) returning the hosted URL
- Tag listing with pagination and create-if-absent tag creation
- Post creation from HTML source
"""

import httpx
import jwt
import mimetypes
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Dict, Any, Optional, Type
from pipeline.base import Publisher
from schemas.photo import PostDraft
from core.config import settings
from core.exceptions import (
    PublishError,
    ImageUploadError,
    TagError,
    PostCreationError
)
import logging

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 5 * 60
TOKEN_AUDIENCE = "/admin/"


class GhostPublisher(Publisher):
    """
    Publisher backed by the Ghost Admin API.

    Attributes:
        url: Ghost site URL (``https://blog.example.com``)
        admin_api_key: Admin API key in ``<id>:<hex secret>`` form
        api_version: Value sent in the ``Accept-Version`` header
        tag_page_size: ``limit`` used for each tag listing page
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        url: Optional[str] = None,
        admin_api_key: Optional[str] = None,
        api_version: Optional[str] = None,
        tag_page_size: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.url = (url or settings.GHOST_URL or "").rstrip("/")
        self.admin_api_key = admin_api_key or settings.GHOST_ADMIN_API_KEY
        self.api_version = api_version or settings.GHOST_API_VERSION
        self.tag_page_size = tag_page_size or settings.GHOST_TAG_PAGE_SIZE
        self.timeout = timeout or settings.HTTP_TIMEOUT
        self._client = client

        if not self.url:
            raise ValueError("Ghost URL is not configured (set GHOST_URL)")
        if not self.admin_api_key or ":" not in self.admin_api_key:
            raise ValueError("Ghost Admin API key must look like '<id>:<secret>' (set GHOST_ADMIN_API_KEY)")

    @property
    def api_root(self) -> str:
        return f"{self.url}/ghost/api/admin"

    def _admin_token(self) -> str:
        """Sign a short-lived admin token as Ghost expects (HS256, kid header)"""
        key_id, secret = self.admin_api_key.split(":", 1)
        issued_at = int(time.time())
        payload = {
            "iat": issued_at,
            "exp": issued_at + TOKEN_TTL_SECONDS,
            "aud": TOKEN_AUDIENCE,
        }
        return jwt.encode(payload, bytes.fromhex(secret), algorithm="HS256", headers={"kid": key_id})

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Ghost {self._admin_token()}",
            "Accept-Version": self.api_version,
        }

    @asynccontextmanager
    async def _http(self):
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                yield client

    async def _request(
        self,
        method: str,
        endpoint: str,
        error_cls: Type[PublishError],
        **kwargs
    ) -> httpx.Response:
        """
        Send an authenticated request; transport errors are wrapped in ``error_cls``.

        The caller decides how to treat non-2xx responses.
        """
        url = f"{self.api_root}{endpoint}"
        try:
            async with self._http() as client:
                return await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise error_cls(
                f"Request to Ghost failed: {method} {endpoint}",
                context={"endpoint": endpoint},
                original_exception=e
            )

    @staticmethod
    def _raise_for_status(response: httpx.Response, endpoint: str, error_cls: Type[PublishError], message: str):
        if response.is_success:
            return
        raise error_cls(
            f"{message} (HTTP {response.status_code})",
            context={
                "endpoint": endpoint,
                "status_code": response.status_code,
                "response_body": response.text[:500]
            }
        )

    async def upload_image(self, path: Path) -> str:
        """
        Upload a local image file.

        Returns:
            The hosted image URL
        """
        path = Path(path)
        endpoint = "/images/upload/"
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        try:
            content = path.read_bytes()
        except OSError as e:
            raise ImageUploadError(
                f"Cannot read image {path}",
                context={"path": str(path)},
                original_exception=e
            )

        response = await self._request(
            "POST",
            endpoint,
            ImageUploadError,
            files={"file": (path.name, content, content_type)},
            data={"ref": str(path)},
        )
        self._raise_for_status(response, endpoint, ImageUploadError, "Image upload rejected")

        images = response.json().get("images") or []
        if not images or not images[0].get("url"):
            raise ImageUploadError(
                "Image upload response did not contain a URL",
                context={"endpoint": endpoint, "response_body": response.text[:500]}
            )

        return images[0]["url"]

    async def list_tag_names(self) -> List[str]:
        """List every tag name, following ``meta.pagination.next``"""
        endpoint = "/tags/"
        names: List[str] = []
        page = 1

        while page:
            response = await self._request(
                "GET",
                endpoint,
                TagError,
                params={"limit": self.tag_page_size, "page": page, "fields": "name"},
            )
            self._raise_for_status(response, endpoint, TagError, "Failed to list tags")

            data = response.json()
            names.extend(tag["name"] for tag in data.get("tags", []))
            page = ((data.get("meta") or {}).get("pagination") or {}).get("next")

        return names

    async def create_tag(self, name: str, slug: str) -> None:
        """Create a tag; an "already exists" validation error counts as success"""
        endpoint = "/tags/"
        response = await self._request(
            "POST",
            endpoint,
            TagError,
            json={"tags": [{"name": name, "slug": slug}]},
        )

        if response.status_code == 422 and "already exists" in response.text.lower():
            logger.debug(f"Tag '{name}' already exists")
            return

        self._raise_for_status(response, endpoint, TagError, f"Failed to create tag '{name}'")

    async def create_post(self, post: PostDraft, source: str = "html") -> Dict[str, Any]:
        """Create a post and return Ghost's representation of it"""
        endpoint = "/posts/"
        response = await self._request(
            "POST",
            endpoint,
            PostCreationError,
            params={"source": source},
            json={"posts": [post.model_dump(exclude_none=True)]},
        )
        self._raise_for_status(response, endpoint, PostCreationError, f"Failed to create post '{post.title}'")

        posts = response.json().get("posts") or [{}]
        return posts[0]
