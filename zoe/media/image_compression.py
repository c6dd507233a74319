"""Upload validation and server-side image compression (Pillow).

Photos are scaled so the longest side is at most max_dimension, then
re-encoded as JPEG. If the result is still above max_size_mb, one more
pass at lower quality is made; the output is returned even if it is still
over the target.
"""

from __future__ import annotations

import io
import math
import os
from dataclasses import dataclass

from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from zoe.media.errors import ImageProcessingError, UploadValidationError

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024
MAX_FILES_PER_REQUEST = 4

ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/heic",
        "image/heif",
    }
)
ALLOWED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp", ".heic", ".heif"})

DEFAULT_MAX_SIZE_MB = 0.8
DEFAULT_MAX_DIMENSION = 1920
DEFAULT_QUALITY = 85
MIN_QUALITY = 50


def validate_upload(filename: str, content_type: str | None, size: int) -> None:
    """Reject files the photo endpoints do not accept.

    Raises:
        UploadValidationError: wrong MIME type, wrong extension or too large
    """
    mime = (content_type or "").lower()
    if mime not in ALLOWED_MIME_TYPES:
        raise UploadValidationError("Invalid file type. Only image files (JPG, PNG, WEBP, HEIC) are allowed", filename)
    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise UploadValidationError("Invalid file extension. Allowed: JPG, JPEG, PNG, WEBP, HEIC, HEIF", filename)
    if size > MAX_FILE_SIZE_BYTES:
        raise UploadValidationError("File size too large. Maximum size is 10MB", filename)


def validate_file_count(count: int, maximum: int = MAX_FILES_PER_REQUEST) -> None:
    if count > maximum:
        raise UploadValidationError(f"Too many files. Maximum {maximum} images allowed per post")


def scaled_dimensions(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Fit (width, height) inside a max_dimension square, preserving aspect ratio."""
    if width > height:
        if width > max_dimension:
            return max_dimension, max(1, round(height * max_dimension / width))
    elif height > max_dimension:
        return max(1, round(width * max_dimension / height)), max_dimension
    return width, height


@dataclass
class CompressedImage:
    data: bytes
    width: int
    height: int
    quality: int
    original_size: int

    @property
    def size(self) -> int:
        return len(self.data)

    content_type = "image/jpeg"


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def compress_image(
    data: bytes,
    max_size_mb: float = DEFAULT_MAX_SIZE_MB,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: int = DEFAULT_QUALITY,
) -> CompressedImage:
    """Downscale and re-encode an image as JPEG.

    Args:
        data: Raw uploaded bytes
        max_size_mb: Target size; triggers one lower-quality retry when exceeded
        max_dimension: Longest side in pixels after scaling
        quality: JPEG quality 1-95

    Raises:
        ImageProcessingError: data is not an image Pillow can decode
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            image = ImageOps.exif_transpose(source)
            image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageProcessingError(f"Failed to load image: {e}") from e

    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")

    width, height = scaled_dimensions(image.width, image.height, max_dimension)
    if (width, height) != (image.width, image.height):
        image = image.resize((width, height), Image.Resampling.LANCZOS)

    encoded = _encode_jpeg(image, quality)
    max_size_bytes = max_size_mb * 1024 * 1024
    if len(encoded) > max_size_bytes and quality > MIN_QUALITY:
        quality = max(MIN_QUALITY, quality - 10)
        encoded = _encode_jpeg(image, quality)
        logger.debug(f"Image above {max_size_mb}MB, re-encoded at quality={quality} ({format_file_size(len(encoded))})")

    return CompressedImage(data=encoded, width=width, height=height, quality=quality, original_size=len(data))


def format_file_size(size_bytes: int) -> str:
    if size_bytes == 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB"]
    index = min(int(math.floor(math.log(size_bytes) / math.log(1024))), len(units) - 1)
    value = math.floor(size_bytes / 1024**index * 100 + 0.5) / 100
    return f"{value:g} {units[index]}"
