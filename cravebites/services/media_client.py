"""
HTTP client for the Cloudinary upload API
"""
from dataclasses import dataclass
import hashlib
import time
import httpx
from typing import Dict, Optional
from opentelemetry import trace
import logging

from cravebites.errors import UploadError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CLOUDINARY_API_URL = "https://api.cloudinary.com/v1_1"


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str


class MediaUploadClient:
    """Client for signed Cloudinary uploads"""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "cravebites",
        timeout: float = 30.0,
        base_url: str = CLOUDINARY_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "MediaUploadClient":
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            folder=settings.cloudinary_folder,
            timeout=settings.cloudinary_timeout,
            transport=transport
        )

    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def sign(self, params: Dict[str, str]) -> str:
        """
        Cloudinary request signature

        SHA-1 of the parameters sorted by name, joined as ``k=v`` with ``&``,
        followed by the API secret.
        """
        payload = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] != "")
        return hashlib.sha1(f"{payload}{self.api_secret}".encode("utf-8")).hexdigest()

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        folder: Optional[str] = None
    ) -> UploadedImage:
        """
        Upload an image and return its delivery URL

        Raises:
            UploadError: the service is not configured, unreachable, or
                rejected the file
        """
        with tracer.start_as_current_span("media_client.upload") as span:
            span.set_attribute("upload.bytes", len(content))
            span.set_attribute("upload.content_type", content_type)

            if not self.is_configured():
                raise UploadError("Image upload service is not configured properly")

            params = {
                "folder": folder or self.folder,
                "overwrite": "false",
                "timestamp": str(int(time.time())),
                "unique_filename": "true",
                "use_filename": "true",
            }
            data = dict(params, api_key=self.api_key, signature=self.sign(params))
            url = f"{self.base_url}/{self.cloud_name}/image/upload"

            logger.info(f"Uploading {filename} ({len(content)} bytes) to folder {params['folder']}")
            try:
                response = await self.client.post(
                    url,
                    data=data,
                    files={"file": (filename, content, content_type)}
                )
            except httpx.HTTPError as e:
                span.record_exception(e)
                logger.error(f"Media host unreachable: {e}")
                raise UploadError("Error uploading image") from e

            span.set_attribute("http.status_code", response.status_code)
            if response.status_code != 200:
                try:
                    reason = response.json().get("error", {}).get("message", response.text)
                except ValueError:
                    reason = response.text
                logger.error(f"Upload rejected ({response.status_code}): {reason}")
                raise UploadError(f"Error uploading image: {reason}")

            body = response.json()
            image = UploadedImage(url=body["secure_url"], public_id=body["public_id"])
            logger.info(f"Upload successful: {image.public_id}")
            return image

    async def health_check(self) -> bool:
        """Ping the admin API with the configured credentials"""
        if not self.is_configured():
            return False
        try:
            response = await self.client.get(
                f"{self.base_url}/{self.cloud_name}/ping",
                auth=(self.api_key, self.api_secret)
            )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error(f"Media host health check failed: {e}")
            return False

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()
