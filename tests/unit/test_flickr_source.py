"""
Unit tests for the Flickr photo source
"""

import httpx
import pytest
from pipeline.sources.flickr import FlickrPhotoSource
from schemas.photo import Photo
from core.exceptions import (
    PhotoSourceError,
    AuthenticationError,
    NetworkError,
    DownloadError
)


def make_source(handler, **kwargs):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FlickrPhotoSource(
        api_key="test_key",
        user_id="12345678@N00",
        api_url="https://api.flickr.test/services/rest/",
        client=client,
        **kwargs
    )


def page_payload(records, page=1, pages=1):
    return {
        "photos": {"page": page, "pages": pages, "perpage": 500, "total": len(records), "photo": records},
        "stat": "ok",
    }


class TestListPhotos:
    """Listing and pagination"""

    @pytest.mark.asyncio
    async def test_list_photos_since(self, mock_flickr_photos):
        requests = []

        def handler(request: httpx.Request):
            requests.append(request)
            return httpx.Response(200, json=page_payload(mock_flickr_photos))

        photos = await make_source(handler).list_photos_since(1705000000)

        assert [p.id for p in photos] == ["53001", "53002"]
        assert photos[0].description == "Low tide at dawn"

        params = requests[0].url.params
        assert params["method"] == "flickr.people.getPhotos"
        assert params["api_key"] == "test_key"
        assert params["user_id"] == "12345678@N00"
        assert params["min_upload_date"] == "1705000000"
        assert params["content_type"] == "1"
        assert params["per_page"] == "500"
        assert params["format"] == "json"
        assert params["nojsoncallback"] == "1"
        assert "url_o" in params["extras"].split(",")
        assert "date_upload" in params["extras"].split(",")

    @pytest.mark.asyncio
    async def test_follows_pagination(self, mock_flickr_photos):
        pages_requested = []

        def handler(request: httpx.Request):
            page = int(request.url.params["page"])
            pages_requested.append(page)
            return httpx.Response(200, json=page_payload([mock_flickr_photos[page - 1]], page=page, pages=2))

        photos = await make_source(handler, page_size=1).list_photos_since(0)

        assert pages_requested == [1, 2]
        assert [p.id for p in photos] == ["53001", "53002"]

    @pytest.mark.asyncio
    async def test_stops_at_max_pages(self, mock_flickr_photos):
        pages_requested = []

        def handler(request: httpx.Request):
            page = int(request.url.params["page"])
            pages_requested.append(page)
            return httpx.Response(200, json=page_payload([mock_flickr_photos[0]], page=page, pages=10))

        photos = await make_source(handler, max_pages=3).list_photos_since(0)

        assert pages_requested == [1, 2, 3]
        assert len(photos) == 3

    @pytest.mark.asyncio
    async def test_empty_listing(self):
        def handler(request):
            return httpx.Response(200, json={"photos": {"page": 1, "pages": 0, "photo": []}, "stat": "ok"})

        assert await make_source(handler).list_photos_since(0) == []


class TestListErrors:
    """Error mapping"""

    @pytest.mark.asyncio
    async def test_invalid_api_key(self):
        def handler(request):
            return httpx.Response(200, json={"stat": "fail", "code": 100, "message": "Invalid API Key (Key has invalid format)"})

        with pytest.raises(AuthenticationError) as exc_info:
            await make_source(handler).list_photos_since(0)

        assert exc_info.value.context["flickr_code"] == 100

    @pytest.mark.asyncio
    async def test_other_api_failure(self):
        def handler(request):
            return httpx.Response(200, json={"stat": "fail", "code": 1, "message": "User not found"})

        with pytest.raises(PhotoSourceError) as exc_info:
            await make_source(handler).list_photos_since(0)

        assert not isinstance(exc_info.value, AuthenticationError)
        assert "User not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_server_error(self):
        def handler(request):
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(NetworkError):
            await make_source(handler).list_photos_since(0)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused")

        with pytest.raises(NetworkError) as exc_info:
            await make_source(handler).list_photos_since(0)

        assert isinstance(exc_info.value.original_exception, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        with pytest.raises(PhotoSourceError):
            await make_source(handler).list_photos_since(0)


class TestDownload:
    """Original image download"""

    @pytest.mark.asyncio
    async def test_download_named_after_url_basename(self, tmp_path):
        def handler(request):
            return httpx.Response(200, content=b"jpeg-bytes")

        photo = Photo(id="53001", url_o="https://live.staticflickr.com/65535/53001_aaaa_o.jpg")
        path = await make_source(handler).download_photo(photo, tmp_path)

        assert path == tmp_path / "53001_aaaa_o.jpg"
        assert path.read_bytes() == b"jpeg-bytes"

    @pytest.mark.asyncio
    async def test_download_http_error_leaves_no_file(self, tmp_path):
        def handler(request):
            return httpx.Response(404)

        photo = Photo(id="53001", url_o="https://live.staticflickr.com/65535/53001_aaaa_o.jpg")

        with pytest.raises(DownloadError) as exc_info:
            await make_source(handler).download_photo(photo, tmp_path)

        assert exc_info.value.context["status_code"] == 404
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_download_transport_error_leaves_no_file(self, tmp_path):
        def handler(request):
            raise httpx.ReadTimeout("timed out")

        photo = Photo(id="53001", url_o="https://live.staticflickr.com/65535/53001_aaaa_o.jpg")

        with pytest.raises(DownloadError):
            await make_source(handler).download_photo(photo, tmp_path)

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_download_without_original_url(self, tmp_path):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(DownloadError):
            await make_source(handler).download_photo(Photo(id="1"), tmp_path)
