"""
Blob store for uploaded images (avatars, banners, post images).

Only the URL returned by :meth:`BlobStore.put` is ever persisted in an
entity. Uploads must finish before the profile/post mutation that refers to
them is committed.
"""

import os
import time
from pathlib import Path
from typing import Optional, Protocol

from campusfeed.errors import StorageError, ValidationError
from campusfeed.logging import logger

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

IMAGE_KINDS = ("avatar", "banner", "post")


class BlobStore(Protocol):
    def put(self, data: bytes, content_type: str, key: str) -> str:
        """Store ``data`` under ``key`` and return its public URL."""
        ...


class LocalBlobStore:
    """Writes blobs below ``root`` and serves them under ``base_url``."""

    def __init__(self, root: str, base_url: str = "/media"):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def put(self, data: bytes, content_type: str, key: str) -> str:
        target = (self.root / key).resolve()
        if self.root not in target.parents:
            raise StorageError(f"Refusing to write outside the media root: {key}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp = target.with_name(target.name + ".part")
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError as exc:
            logger.error("Blob write failed for {}: {}", key, exc)
            raise StorageError("Upload failed") from exc
        return f"{self.base_url}/{key}"


def validate_image(data: bytes, content_type: Optional[str], max_bytes: int) -> None:
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError("Only images are allowed (jpeg, png, gif, webp)")
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > max_bytes:
        raise ValidationError(f"Image is too large (max {max_bytes // (1024 * 1024)}MB)")


def image_key(user_id: int, kind: str, filename: Optional[str], content_type: str) -> str:
    """Build ``{kind}s/{user_id}-{kind}-{millis}{ext}`` for an upload."""
    if kind not in IMAGE_KINDS:
        raise ValueError(f"Unknown image kind: {kind}")
    ext = Path(filename or "").suffix.lower()
    if ext not in ALLOWED_IMAGE_TYPES.values() and ext != ".jpeg":
        ext = ALLOWED_IMAGE_TYPES[content_type]
    millis = int(time.time() * 1000)
    return f"{kind}s/{user_id}-{kind}-{millis}{ext}"


def upload_image(
    store: BlobStore,
    data: bytes,
    content_type: Optional[str],
    filename: Optional[str],
    user_id: int,
    kind: str,
    max_bytes: int,
) -> str:
    """Validate an image upload and store it, returning the public URL."""
    validate_image(data, content_type, max_bytes)
    key = image_key(user_id, kind, filename, content_type)
    return store.put(data, content_type, key)
