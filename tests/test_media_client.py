"""Tests for the Cloudinary upload client."""

import asyncio
import hashlib
import re

import httpx
import pytest

from cravebites.errors import UploadError
from cravebites.services.media_client import MediaUploadClient


def _field(request, name):
    match = re.search(rb'name="%s"\r\n\r\n([^\r]*)\r\n' % name.encode(), request.content)
    return match.group(1).decode() if match else None


def _client(handler, **overrides):
    options = dict(cloud_name="demo", api_key="key-1", api_secret="shh", folder="cravebites")
    options.update(overrides)
    return MediaUploadClient(transport=httpx.MockTransport(handler), **options)


def _upload(client, **kwargs):
    async def run():
        try:
            return await client.upload(b"png bytes", "dish.png", "image/png", **kwargs)
        finally:
            await client.close()
    return asyncio.run(run())


class TestSign:
    def test_signature_format(self):
        client = MediaUploadClient("demo", "key-1", "shh")

        expected = hashlib.sha1(b"folder=a&timestamp=100shh").hexdigest()

        assert client.sign({"timestamp": "100", "folder": "a"}) == expected

    def test_empty_values_skipped(self):
        client = MediaUploadClient("demo", "key-1", "shh")

        assert client.sign({"folder": "a", "public_id": ""}) == client.sign({"folder": "a"})


class TestUpload:
    def test_signed_upload(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={
                "secure_url": "https://res.cloudinary.com/demo/image/upload/dish.png",
                "public_id": "cravebites/items/dish",
            })

        image = _upload(_client(handler), folder="cravebites/items")

        assert image.url == "https://res.cloudinary.com/demo/image/upload/dish.png"
        assert image.public_id == "cravebites/items/dish"

        [request] = requests
        assert request.method == "POST"
        assert str(request.url) == "https://api.cloudinary.com/v1_1/demo/image/upload"
        assert _field(request, "folder") == "cravebites/items"
        assert _field(request, "api_key") == "key-1"

        signed = (
            f"folder=cravebites/items&overwrite=false&timestamp={_field(request, 'timestamp')}"
            f"&unique_filename=true&use_filename=true"
        )
        assert _field(request, "signature") == hashlib.sha1(f"{signed}shh".encode()).hexdigest()

    def test_default_folder(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"secure_url": "https://x/y.png", "public_id": "y"})

        _upload(_client(handler))

        assert _field(requests[0], "folder") == "cravebites"

    def test_rejected_upload(self):
        def handler(request):
            return httpx.Response(400, json={"error": {"message": "Invalid image file"}})

        with pytest.raises(UploadError) as exc_info:
            _upload(_client(handler))

        assert "Invalid image file" in exc_info.value.message

    def test_unreachable_host(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UploadError) as exc_info:
            _upload(_client(handler))

        assert exc_info.value.message == "Error uploading image"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_not_configured(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(UploadError) as exc_info:
            _upload(_client(handler, api_secret=""))

        assert exc_info.value.message == "Image upload service is not configured properly"


class TestUploadEndpointErrors:
    def test_upload_error_is_500(self, client):
        from cravebites.dependencies import get_media_client
        from cravebites.main import app

        def handler(request):
            return httpx.Response(500, text="boom")

        app.dependency_overrides[get_media_client] = lambda: _client(handler)

        response = client.post("/api/upload", files={"image": ("dish.png", b"png", "image/png")})

        assert response.status_code == 500
        assert response.json()["message"].startswith("Error uploading image")
