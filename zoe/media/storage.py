"""Local filesystem storage for uploaded images."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from zoe.config.settings import settings

PUBLIC_PREFIX = "/uploads"


def _root() -> Path:
    root = Path(settings.upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


def save_image(data: bytes, folder: str) -> str:
    """Write JPEG bytes under upload_dir/folder and return the public URL path."""
    target_dir = _root() / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    name = f"{uuid.uuid4().hex}.jpg"
    (target_dir / name).write_bytes(data)
    logger.debug(f"Stored image {folder}/{name} ({len(data)} bytes)")
    return f"{PUBLIC_PREFIX}/{folder}/{name}"


def delete_image(url: str) -> None:
    if not url.startswith(f"{PUBLIC_PREFIX}/"):
        return
    relative = url[len(PUBLIC_PREFIX) + 1 :]
    path = (_root() / relative).resolve()
    if _root().resolve() not in path.parents:
        logger.warning(f"Refusing to delete file outside upload dir: {url}")
        return
    path.unlink(missing_ok=True)


def discard_images(urls: Iterable[str]) -> None:
    """Remove files whose database rows were never committed."""
    for url in urls:
        try:
            delete_image(url)
        except OSError as e:
            logger.error(f"Could not remove orphaned upload {url}: {e}")
        else:
            logger.info(f"Removed orphaned upload {url}")
