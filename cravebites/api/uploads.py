"""FastAPI routes for image uploads"""
from fastapi import APIRouter, Depends, File, UploadFile
from typing import Optional
import logging

from cravebites.config import settings
from cravebites.dependencies import get_media_client
from cravebites.errors import ValidationError
from cravebites.models.schemas import UploadResponse
from cravebites.services.media_client import MediaUploadClient, UploadedImage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["uploads"])


async def read_image(file: Optional[UploadFile]) -> bytes:
    """Read an uploaded image, enforcing type and size limits"""
    if file is None or not file.filename:
        raise ValidationError(["No file uploaded"])
    if not (file.content_type or "").startswith("image/"):
        raise ValidationError(["Only image files are allowed"])

    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise ValidationError([f"File size should be less than {settings.max_upload_bytes // (1024 * 1024)}MB"])
    if not content:
        raise ValidationError(["Uploaded file is empty"])
    return content


async def upload_image(
    media: MediaUploadClient,
    file: Optional[UploadFile],
    folder: Optional[str] = None
) -> UploadedImage:
    content = await read_image(file)
    return await media.upload(content, file.filename, file.content_type, folder=folder)


@router.post("/upload", response_model=UploadResponse)
async def upload(
    image: Optional[UploadFile] = File(None),
    media: MediaUploadClient = Depends(get_media_client)
):
    """Upload an image (max 5MB) and return its URL"""
    logger.info(f"Upload request received: {image.filename if image else 'no file'}")
    uploaded = await upload_image(media, image)
    return UploadResponse(url=uploaded.url, public_id=uploaded.public_id)
