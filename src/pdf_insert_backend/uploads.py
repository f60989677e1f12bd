"""
Upload checks and image decoding.

Everything in here runs before any PDF work starts: content types and sizes are
checked while the multipart file is read, and image bytes are decoded with Pillow
to learn their natural dimensions.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Sequence

from fastapi import HTTPException, UploadFile
from PIL import Image, UnidentifiedImageError

from .configuration import UploadLimits
from .models import ImageDimensions
from .utils import split_extension

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024
# MPO is how Pillow reports multi-picture JPEGs from phone cameras
SUPPORTED_IMAGE_FORMATS = {"JPEG", "MPO", "PNG"}
PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}


class ImageDecodeError(ValueError):
    """Raised when uploaded bytes are not a readable JPEG or PNG image."""


@dataclass(frozen=True)
class DecodedImage:
    data: bytes
    format: str
    dimensions: ImageDimensions
    filename: str = "image"


def is_allowed_image_type(content_type: Optional[str], allowed: Sequence[str]) -> bool:
    if not content_type:
        return False
    pattern = "|".join(re.escape(kind) for kind in allowed)
    return re.search(pattern, content_type, re.IGNORECASE) is not None


def is_pdf_upload(upload: UploadFile) -> bool:
    content_type = (upload.content_type or "").lower()
    if content_type in PDF_CONTENT_TYPES:
        return True
    _, extension = split_extension(upload.filename or "")
    return extension.lower() == ".pdf"


async def read_limited(upload: UploadFile, limits: UploadLimits) -> bytes:
    """
    Read an upload into memory, refusing anything larger than the size limit.

    Raises:
        HTTPException: 413 once more than max_file_size_bytes have been read
    """
    buffer = bytearray()
    try:
        while chunk := await upload.read(READ_CHUNK_SIZE):
            buffer.extend(chunk)
            if len(buffer) > limits.max_file_size_bytes:
                logger.warning("Rejected %s: larger than %d bytes", upload.filename, limits.max_file_size_bytes)
                limit_mb = limits.max_file_size_bytes // (1024 * 1024)
                raise HTTPException(
                    status_code=413,
                    detail=f"{upload.filename or 'Upload'} exceeds the {limit_mb}MB limit",
                )
    finally:
        await upload.close()
    return bytes(buffer)


def check_file_count(uploads: Sequence[UploadFile], limits: UploadLimits) -> None:
    if len(uploads) > limits.max_files:
        raise HTTPException(status_code=400, detail=f"Too many files; at most {limits.max_files} are allowed")


async def read_image_upload(upload: UploadFile, limits: UploadLimits) -> DecodedImage:
    if not is_allowed_image_type(upload.content_type, limits.allowed_image_types):
        logger.warning("Rejected %s: content type %s", upload.filename, upload.content_type)
        raise HTTPException(status_code=400, detail="Only JPEG and PNG images are allowed")
    data = await read_limited(upload, limits)
    return decode_image(data, upload.filename or "image")


async def read_image_uploads(uploads: Sequence[UploadFile], limits: UploadLimits) -> List[DecodedImage]:
    check_file_count(uploads, limits)
    return [await read_image_upload(upload, limits) for upload in uploads]


async def read_pdf_upload(upload: UploadFile, limits: UploadLimits) -> bytes:
    if not is_pdf_upload(upload):
        logger.warning("Rejected %s: content type %s", upload.filename, upload.content_type)
        raise HTTPException(status_code=400, detail="Only PDF uploads are supported for the pdf field")
    return await read_limited(upload, limits)


def decode_image(data: bytes, filename: str = "image") -> DecodedImage:
    """
    Decode image bytes far enough to learn format and pixel size.

    Args:
        data: Raw upload bytes
        filename: Original filename, kept for log messages

    Returns:
        DecodedImage with the original bytes and natural dimensions

    Raises:
        ImageDecodeError: If Pillow cannot identify the data or it is not JPEG/PNG
    """
    if not data:
        raise ImageDecodeError(f"Image {filename} is empty")
    try:
        with Image.open(BytesIO(data)) as image:
            image_format = image.format
            width, height = image.size
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Could not decode image {filename}: {exc}") from exc

    if image_format not in SUPPORTED_IMAGE_FORMATS:
        raise ImageDecodeError(f"Unsupported image format {image_format} for {filename}; only JPEG and PNG are allowed")
    if width <= 0 or height <= 0:
        raise ImageDecodeError(f"Image {filename} has no pixels")

    return DecodedImage(
        data=data,
        format=image_format,
        dimensions=ImageDimensions(width=width, height=height),
        filename=filename,
    )
