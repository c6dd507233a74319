"""Tests for the sequential photo upload queue."""

import io
from unittest.mock import MagicMock

from PIL import Image

from zoe.media.errors import ImageProcessingError
from zoe.media.image_compression import CompressedImage
from zoe.media.upload_queue import PhotoUploadQueue, UploadStatus


def _fake_compress(data: bytes) -> CompressedImage:
    if data == b"corrupt":
        raise ImageProcessingError("Failed to load image: corrupt")
    return CompressedImage(data=data[:2], width=10, height=10, quality=85, original_size=len(data))


def test_all_items_succeed_in_order():
    uploader = MagicMock(side_effect=lambda item, compressed: f"/uploads/{item.filename}")
    queue = PhotoUploadQueue(uploader=uploader, compressor=_fake_compress)
    queue.add("a.jpg", "image/jpeg", b"aaaa")
    queue.add("b.png", "image/png", b"bbbb")

    items = queue.run()

    assert [item.status for item in items] == [UploadStatus.DONE, UploadStatus.DONE]
    assert [item.result for item in queue.succeeded] == ["/uploads/a.jpg", "/uploads/b.png"]
    assert [call.args[0].filename for call in uploader.call_args_list] == ["a.jpg", "b.png"]
    assert queue.pending() == []


def test_failures_are_isolated_per_item():
    def uploader(item, compressed):
        if item.filename == "c.jpg":
            raise RuntimeError("disk full")
        return item.filename

    queue = PhotoUploadQueue(uploader=uploader, compressor=_fake_compress)
    queue.add("a.gif", "image/gif", b"gif")
    queue.add("b.jpg", "image/jpeg", b"corrupt")
    queue.add("c.jpg", "image/jpeg", b"cccc")
    queue.add("d.jpg", "image/jpeg", b"dddd")

    queue.run()

    assert [item.status for item in queue.items] == [
        UploadStatus.FAILED,
        UploadStatus.FAILED,
        UploadStatus.FAILED,
        UploadStatus.DONE,
    ]
    errors = [item.error for item in queue.failed]
    assert errors[0].startswith("Invalid file type")
    assert "corrupt" in errors[1]
    assert errors[2] == "Upload failed: disk full"
    assert [item.result for item in queue.succeeded] == ["d.jpg"]


def test_run_only_processes_pending_items():
    uploader = MagicMock(return_value="url")
    queue = PhotoUploadQueue(uploader=uploader, compressor=_fake_compress)
    queue.add("a.jpg", "image/jpeg", b"aaaa")
    queue.run()
    queue.add("b.jpg", "image/jpeg", b"bbbb")
    queue.run()

    assert uploader.call_count == 2
    assert len(queue.succeeded) == 2


def test_item_to_dict_reports_compressed_size():
    queue = PhotoUploadQueue(uploader=MagicMock(return_value="url"), compressor=_fake_compress)
    item = queue.add("a.jpg", "image/jpeg", b"aaaa")
    assert item.to_dict()["size"] == 4
    queue.run()
    assert item.to_dict() == {"filename": "a.jpg", "status": "done", "error": None, "size": 2}


def _png(size) -> bytes:
    buffer = io.BytesIO()
    Image.new("1", size).save(buffer, format="PNG")
    return buffer.getvalue()


def test_oversized_image_does_not_stop_the_queue(monkeypatch):
    # Anything above twice this pixel count is refused by Pillow as a decompression bomb
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    queue = PhotoUploadQueue(uploader=MagicMock(return_value="url"))
    queue.add("bomb.png", "image/png", _png((200, 200)))
    queue.add("fine.png", "image/png", _png((10, 10)))

    queue.run()

    assert [item.status for item in queue.items] == [UploadStatus.FAILED, UploadStatus.DONE]
    assert queue.items[0].error.startswith("Failed to load image")


def test_unexpected_compressor_error_is_isolated():
    def compressor(data: bytes) -> CompressedImage:
        if data == b"boom":
            raise RuntimeError("encoder crashed")
        return _fake_compress(data)

    queue = PhotoUploadQueue(uploader=MagicMock(return_value="url"), compressor=compressor)
    queue.add("a.jpg", "image/jpeg", b"boom")
    queue.add("b.jpg", "image/jpeg", b"bbbb")

    queue.run()

    assert queue.items[0].status is UploadStatus.FAILED
    assert queue.items[0].error == "Compression failed: encoder crashed"
    assert queue.items[1].status is UploadStatus.DONE
