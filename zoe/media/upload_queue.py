"""Sequential multi-photo upload orchestration.

Each queued photo is validated, compressed and handed to an uploader one at
a time. A failure is recorded on that item only; the rest of the queue
still runs.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from zoe.media.errors import ImageProcessingError, UploadValidationError
from zoe.media.image_compression import CompressedImage, compress_image, validate_upload


class UploadStatus(str, Enum):
    PENDING = "pending"
    COMPRESSING = "compressing"
    UPLOADING = "uploading"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UploadItem:
    filename: str
    content_type: str | None
    data: bytes
    status: UploadStatus = UploadStatus.PENDING
    error: str | None = None
    result: Any = None
    compressed: CompressedImage | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "status": self.status.value,
            "error": self.error,
            "size": self.compressed.size if self.compressed else len(self.data),
        }


Uploader = Callable[[UploadItem, CompressedImage], Any]


class PhotoUploadQueue:
    def __init__(self, uploader: Uploader, compressor: Callable[[bytes], CompressedImage] = compress_image):
        self.uploader = uploader
        self.compressor = compressor
        self.items: list[UploadItem] = []

    def add(self, filename: str, content_type: str | None, data: bytes) -> UploadItem:
        item = UploadItem(filename=filename, content_type=content_type, data=data)
        self.items.append(item)
        return item

    def pending(self) -> list[UploadItem]:
        return [item for item in self.items if item.status is UploadStatus.PENDING]

    def _fail(self, item: UploadItem, message: str) -> None:
        item.status = UploadStatus.FAILED
        item.error = message
        logger.warning(f"Photo upload failed: filename={item.filename}, error={message}")

    def _process(self, item: UploadItem) -> None:
        try:
            validate_upload(item.filename, item.content_type, len(item.data))
        except UploadValidationError as e:
            self._fail(item, e.message)
            return

        item.status = UploadStatus.COMPRESSING
        try:
            item.compressed = self.compressor(item.data)
        except ImageProcessingError as e:
            self._fail(item, str(e))
            return
        except Exception as e:
            self._fail(item, f"Compression failed: {e}")
            return

        item.status = UploadStatus.UPLOADING
        try:
            item.result = self.uploader(item, item.compressed)
        except Exception as e:
            self._fail(item, f"Upload failed: {e}")
            return
        item.status = UploadStatus.DONE

    def run(self) -> list[UploadItem]:
        """Process every pending item in insertion order and return all items."""
        for item in self.pending():
            self._process(item)
        done = sum(1 for item in self.items if item.status is UploadStatus.DONE)
        logger.info(f"Photo upload queue finished: {done}/{len(self.items)} uploaded")
        return self.items

    @property
    def succeeded(self) -> list[UploadItem]:
        return [item for item in self.items if item.status is UploadStatus.DONE]

    @property
    def failed(self) -> list[UploadItem]:
        return [item for item in self.items if item.status is UploadStatus.FAILED]
