"""Validation helpers for uploaded label images."""

import io
import os
from typing import Tuple

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from utils.api_errors import PayloadTooLargeError, UnsupportedMediaError, ValidationError

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
}

# Pillow format name -> MIME type
_PIL_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


def normalize_mime_type(mime_type: str | None) -> str:
    """Lower-case a content type and drop any parameters."""
    mime = (mime_type or "").lower().split(";", 1)[0].strip()
    return "image/jpeg" if mime == "image/jpg" else mime


def sniff_image_type(image_bytes: bytes) -> str:
    """Return the MIME type Pillow detects for the bytes.

    Raises:
        UnsupportedMediaError: If the bytes are not a supported image.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.verify()
            detected = _PIL_FORMATS.get(img.format or "")
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise UnsupportedMediaError("No file uploaded or unsupported file type", str(exc)) from exc
    if detected is None:
        raise UnsupportedMediaError("No file uploaded or unsupported file type", "Unrecognized image format.")
    return detected


def validate_image_upload(image_bytes: bytes, content_type: str | None) -> str:
    """Validate uploaded bytes against the allow-list and size limit.

    Returns:
        The MIME type to forward with the image, as detected from its content.
    """
    if not image_bytes:
        raise ValidationError("No file uploaded or unsupported file type", "Uploaded image is empty.")
    if len(image_bytes) > MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError(
            "Uploaded image is too large", f"Maximum upload size is {MAX_UPLOAD_BYTES} bytes."
        )
    declared = normalize_mime_type(content_type)
    if declared and declared not in ALLOWED_IMAGE_TYPES:
        raise UnsupportedMediaError("No file uploaded or unsupported file type", f"Unsupported content type: {content_type}")
    return sniff_image_type(image_bytes)


async def read_image_upload(image: UploadFile | None) -> Tuple[bytes, str]:
    """Read and validate an uploaded image, returning its bytes and MIME type."""
    if image is None:
        raise ValidationError("No file uploaded or unsupported file type")
    try:
        image_bytes = await image.read()
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise ValidationError("Unable to read uploaded image.", str(exc)) from exc
    return image_bytes, validate_image_upload(image_bytes, image.content_type)
