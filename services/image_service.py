"""Image helpers: reading uploads, MIME detection and data URLs"""
import base64
import logging
from io import BytesIO
from typing import Optional

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from config import DEFAULT_IMAGE_MIME_TYPE, MAX_IMAGE_SIZE_BYTES
from schemas import UploadedImage
from services.errors import ValidationError

logger = logging.getLogger(__name__)

GENERIC_MIME_TYPES = {"", "application/octet-stream"}


def detect_mime_type(data: bytes, declared: Optional[str] = None) -> str:
    """Return the declared MIME type, or sniff it from the image header when it is missing"""
    if declared and declared.lower() not in GENERIC_MIME_TYPES:
        return declared
    try:
        with Image.open(BytesIO(data)) as img:
            mime = Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        mime = None
    if not mime:
        logger.info(f"Could not detect image type, defaulting to {DEFAULT_IMAGE_MIME_TYPE}")
        return DEFAULT_IMAGE_MIME_TYPE
    return mime


def size_error() -> ValidationError:
    return ValidationError(f"Image size must be less than {MAX_IMAGE_SIZE_BYTES // (1024 * 1024)}MB")


def check_upload_sizes(*uploads: Optional[UploadFile]) -> None:
    """Reject oversized parts from their declared size, before any bytes are read"""
    for upload in uploads:
        if upload is not None and upload.size is not None and upload.size > MAX_IMAGE_SIZE_BYTES:
            raise size_error()


async def read_upload(upload: Optional[UploadFile]) -> Optional[UploadedImage]:
    """Read a multipart file part into memory; a missing or empty part yields None.

    At most one byte over the size ceiling is buffered, so a part whose declared
    size was missing or wrong still cannot make the server hold an unbounded file.
    """
    if upload is None:
        return None
    data = await upload.read(MAX_IMAGE_SIZE_BYTES + 1)
    if not data:
        return None
    if len(data) > MAX_IMAGE_SIZE_BYTES:
        raise size_error()
    return UploadedImage(
        data=data,
        mime_type=detect_mime_type(data, upload.content_type),
        filename=upload.filename,
    )


def validate_images(source: Optional[UploadedImage], target: Optional[UploadedImage]) -> None:
    if source is None or target is None:
        raise ValidationError("Both source and target images are required")
    if source.size > MAX_IMAGE_SIZE_BYTES or target.size > MAX_IMAGE_SIZE_BYTES:
        raise size_error()


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("utf-8")


def build_data_url(image_base64: str, mime_type: str) -> str:
    return f"data:{mime_type};base64,{image_base64}"
