"""Tests for upload validation and Pillow-based compression."""

import io
import os

import pytest
from PIL import Image

from zoe.media.errors import ImageProcessingError, UploadValidationError
from zoe.media.image_compression import (
    MAX_FILE_SIZE_BYTES,
    compress_image,
    format_file_size,
    scaled_dimensions,
    validate_file_count,
    validate_upload,
)


def _image_bytes(size=(400, 300), mode="RGB", fmt="JPEG", color="red") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def _noise_bytes(size=(800, 800)) -> bytes:
    buffer = io.BytesIO()
    Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.mark.parametrize(
    ("filename", "content_type"),
    [("a.jpg", "image/jpeg"), ("b.PNG", "image/png"), ("c.webp", "image/webp"), ("d.heic", "image/heic")],
)
def test_validate_upload_accepts(filename, content_type):
    validate_upload(filename, content_type, 1024)


def test_validate_upload_rejects_type():
    with pytest.raises(UploadValidationError) as exc_info:
        validate_upload("notes.pdf", "application/pdf", 10)
    assert "Invalid file type" in exc_info.value.message
    assert exc_info.value.filename == "notes.pdf"


def test_validate_upload_rejects_extension():
    with pytest.raises(UploadValidationError, match="Invalid file extension"):
        validate_upload("photo.gif", "image/jpeg", 10)


def test_validate_upload_rejects_size():
    validate_upload("a.jpg", "image/jpeg", MAX_FILE_SIZE_BYTES)
    with pytest.raises(UploadValidationError, match="10MB"):
        validate_upload("a.jpg", "image/jpeg", MAX_FILE_SIZE_BYTES + 1)


def test_validate_file_count():
    validate_file_count(4)
    with pytest.raises(UploadValidationError, match="Maximum 4 images"):
        validate_file_count(5)


@pytest.mark.parametrize(
    ("dims", "expected"),
    [
        ((4000, 3000), (1920, 1440)),
        ((3000, 4000), (1440, 1920)),
        ((1920, 1920), (1920, 1920)),
        ((800, 600), (800, 600)),
    ],
)
def test_scaled_dimensions(dims, expected):
    assert scaled_dimensions(*dims, 1920) == expected


def test_compress_downscales_large_image():
    result = compress_image(_image_bytes(size=(3000, 2000)))
    assert (result.width, result.height) == (1920, 1280)
    with Image.open(io.BytesIO(result.data)) as out:
        assert out.format == "JPEG"
        assert out.size == (1920, 1280)


def test_compress_keeps_small_image_size():
    result = compress_image(_image_bytes(size=(400, 300)))
    assert (result.width, result.height) == (400, 300)
    assert result.quality == 85


def test_compress_converts_transparent_png():
    result = compress_image(_image_bytes(mode="RGBA", fmt="PNG", color=(0, 0, 255, 128)))
    with Image.open(io.BytesIO(result.data)) as out:
        assert out.mode == "RGB"


def test_compress_retries_once_at_lower_quality():
    result = compress_image(_noise_bytes(), max_size_mb=0.01)
    assert result.quality == 75
    assert result.size > 0.01 * 1024 * 1024


def test_compress_rejects_garbage():
    with pytest.raises(ImageProcessingError):
        compress_image(b"definitely not an image")


@pytest.mark.parametrize(
    ("size", "expected"),
    [(0, "0 Bytes"), (500, "500 Bytes"), (1536, "1.5 KB"), (1048576, "1 MB"), (10 * 1024**3, "10240 MB")],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_compress_rejects_decompression_bomb(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    with pytest.raises(ImageProcessingError, match="Failed to load image"):
        compress_image(_image_bytes(size=(200, 200), mode="1", fmt="PNG", color=0))
