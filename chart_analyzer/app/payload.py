"""
Analysis request builder: turns an upload or a server-local file into an ImagePayload.

Rationale:
- Validate before anything touches the provider (type, size, existence).
- Read the bytes exactly once; nothing is written anywhere.
"""

import logging
import os
from typing import Optional

from .config import MAX_IMAGE_BYTES
from .errors import InvalidTypeError, MissingInputError, SampleNotFoundError, TooLargeError
from .schemas import ImagePayload
from .utils import format_size, media_type_from_extension

logger = logging.getLogger(__name__)

ALLOWED_MEDIA_TYPES = ("image/png", "image/jpeg")

# Browsers and some tools still send these spellings for JPEG
_MEDIA_TYPE_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
}


def normalize_media_type(content_type: Optional[str]) -> str:
    """Lower-case a declared content type, drop parameters and fold JPEG aliases."""
    media_type = (content_type or "").split(";")[0].strip().lower()
    return _MEDIA_TYPE_ALIASES.get(media_type, media_type)


def _check_size(size: int, max_bytes: int) -> None:
    if size > max_bytes:
        raise TooLargeError(
            f"File size too large. Maximum {max_bytes // (1024 * 1024)}MB allowed.",
            details=f"Received {format_size(size)}",
        )


def build_from_upload(
    data: Optional[bytes],
    content_type: Optional[str],
    filename: Optional[str] = None,
    max_bytes: int = MAX_IMAGE_BYTES,
) -> ImagePayload:
    """
    Validate an uploaded file and wrap it in an ImagePayload.

    Raises MissingInputError, InvalidTypeError or TooLargeError.
    """
    if not data:
        raise MissingInputError("No image file provided")

    media_type = normalize_media_type(content_type)
    if not media_type.startswith("image/"):
        raise InvalidTypeError("File must be an image", details=f"Received content type: {content_type!r}")
    if media_type not in ALLOWED_MEDIA_TYPES:
        raise InvalidTypeError(
            "Unsupported image type. Please upload a PNG or JPEG chart.",
            details=f"Received content type: {content_type!r}",
        )

    _check_size(len(data), max_bytes)

    logger.info(f"Upload accepted: name={filename!r}, size={len(data)} bytes, type={media_type}")
    return ImagePayload(data=data, media_type=media_type, filename=filename)


def build_from_path(path: str, max_bytes: int = MAX_IMAGE_BYTES) -> ImagePayload:
    """
    Read a server-local image file into an ImagePayload.

    The media type is derived from the file extension.
    """
    if not os.path.isfile(path):
        raise SampleNotFoundError(
            "Test chart not found. Please add test-chart.png to the static folder.",
            details=f"Looked for: {path}",
        )

    _check_size(os.path.getsize(path), max_bytes)

    with open(path, "rb") as f:
        data = f.read()

    media_type = media_type_from_extension(path)
    logger.info(f"Sample chart loaded: path={path}, size={len(data)} bytes, type={media_type}")
    return ImagePayload(data=data, media_type=media_type, filename=os.path.basename(path))
