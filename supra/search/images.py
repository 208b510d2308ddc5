"""Image ingestion: validate an image file and turn it into an inline payload."""

import asyncio
import base64
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import structlog

from supra.config import get_settings
from supra.models.search import ImageDescriptor
from supra.search.errors import (
    ImageNotFoundError,
    ImageTooLargeError,
    InvalidInputError,
)

logger = structlog.get_logger()

MAX_IMAGE_BYTES = 20 * 1024 * 1024  # 20 MiB
DEFAULT_MIME_TYPE = "image/jpeg"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
}

EXTENDED_MIME_TYPES = {
    **MIME_TYPES,
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
}


def _mime_table(extended: bool) -> dict[str, str]:
    return EXTENDED_MIME_TYPES if extended else MIME_TYPES


def is_supported(path: str | Path, extended: bool = False) -> bool:
    """Check the file extension against the supported image formats."""
    return Path(path).suffix.lower() in _mime_table(extended)


def get_mime_type(path: str | Path, extended: bool = False) -> str:
    """Get MIME type based on file extension.

    Never sniffs content. Unknown extensions fall back to image/jpeg.
    """
    ext = Path(path).suffix.lower()
    mime_type = _mime_table(extended).get(ext)
    if mime_type is None:
        logger.warning("unknown_image_extension", extension=ext, fallback=DEFAULT_MIME_TYPE)
        return DEFAULT_MIME_TYPE
    return mime_type


def ingest_image(
    path: str | Path,
    max_bytes: int | None = None,
    extended: bool | None = None,
) -> ImageDescriptor:
    """Validate an image file and encode it for the inference backend.

    Checks run in order: extension, existence, size. The file is only read
    once all three pass.

    Args:
        path: Filesystem path of the image
        max_bytes: Size cap in bytes (defaults to settings, 20 MiB)
        extended: Also accept heic/heif/svg/ico

    Returns:
        Immutable ImageDescriptor holding base64 data and MIME type

    Raises:
        InvalidInputError: Empty path or unsupported extension
        ImageNotFoundError: File does not exist
        ImageTooLargeError: File is larger than max_bytes
    """
    settings = get_settings()
    if max_bytes is None:
        max_bytes = settings.max_image_bytes
    if extended is None:
        extended = settings.extended_image_types

    if not path or not str(path).strip():
        raise InvalidInputError("Image path is empty")

    if not is_supported(path, extended):
        raise InvalidInputError(
            f"Unsupported image format: {Path(path).suffix or '<none>'}"
        )

    resolved = Path(path).resolve()
    if not resolved.is_file():
        raise ImageNotFoundError(f"Image file not found: {resolved}")

    size = resolved.stat().st_size
    if size > max_bytes:
        raise ImageTooLargeError(str(resolved), size, max_bytes)

    data = base64.b64encode(resolved.read_bytes()).decode("ascii")
    mime_type = get_mime_type(resolved, extended)

    logger.debug("image_ingested", size_bytes=size, mime_type=mime_type)

    return ImageDescriptor(data=data, mime_type=mime_type)


def _spill(data: bytes, suffix: str) -> Path:
    fd, name = tempfile.mkstemp(prefix="supra_upload_", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError:
        path.unlink(missing_ok=True)
        raise
    return path


@asynccontextmanager
async def temporary_upload(data: bytes, filename: str = "upload.jpg") -> AsyncIterator[Path]:
    """Write an uploaded buffer to a unique temp file and remove it on exit.

    The write runs in a worker thread. The original extension is kept so
    ingestion can derive the MIME type.
    """
    path = await asyncio.to_thread(_spill, data, Path(filename).suffix.lower())
    logger.debug("temp_upload_written", path=str(path), size_bytes=len(data))
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("temp_upload_removed", path=str(path))
