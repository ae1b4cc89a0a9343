# app/core/storage_utils.py
import logging
import mimetypes
import uuid
from functools import lru_cache
from typing import Protocol

from supabase import Client

from app.core.config import get_settings
from app.core.errors import UpstreamMediaError
from app.core.supabase_client import supabase_admin

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


class MediaStore(Protocol):
    """
    Where product images live.

    upload() returns a stable public URL; delete() takes that same URL.
    Both raise UpstreamMediaError when the store fails.
    """

    def upload(self, file_bytes: bytes, content_type: str, filename: str | None = None) -> str:
        ...

    def delete(self, url: str) -> None:
        ...


def generate_filename(ext: str) -> str:
    """
    Generate a random filename using UUID4.

    Args:
        ext: File extension without dot (e.g. "png", "jpg")

    Returns:
        A filename like "<uuid4>.png"
    """
    return f"{uuid.uuid4()}.{ext}"


def extension_for(content_type: str, filename: str | None = None) -> str:
    """Pick a file extension from the MIME type, then the original filename."""
    if content_type in IMAGE_EXTENSIONS:
        return IMAGE_EXTENSIONS[content_type]
    guessed = mimetypes.guess_extension(content_type)
    if guessed:
        return guessed.lstrip(".")
    if filename and "." in filename:
        return filename.rsplit(".", 1)[1].lower()
    return "img"


def extract_path_from_public_url(url: str, bucket: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/assets/products/a.png
        -> 'products/a.png'
    """
    marker = f"/storage/v1/object/public/{bucket}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :].split("?", 1)[0]


class SupabaseMediaStore:
    """
    MediaStore backed by a public Supabase Storage bucket.

    The client is created on first use, so read-only routes work without
    Storage credentials.
    """

    def __init__(self, bucket: str, folder: str = "products", client: Client | None = None):
        self._client = client
        self.bucket = bucket
        self.folder = folder.strip("/")

    def _storage(self):
        if self._client is None:
            self._client = supabase_admin()
        return self._client.storage.from_(self.bucket)

    def upload(self, file_bytes: bytes, content_type: str, filename: str | None = None) -> str:
        """
        Upload raw bytes under a random name and return the public URL.

        Path pattern:
            <folder>/<uuid4>.<ext>
        """
        path = f"{self.folder}/{generate_filename(extension_for(content_type, filename))}"
        try:
            storage = self._storage()
            storage.upload(path, file_bytes, {"content-type": content_type})
            return storage.get_public_url(path)
        except Exception as exc:
            raise UpstreamMediaError(f"Upload of {filename or path} failed") from exc

    def delete(self, url: str) -> None:
        """
        Delete a file by its public URL.
        No-op if the URL does not belong to this bucket.
        """
        path = extract_path_from_public_url(url, self.bucket)
        if path is None:
            logger.info("Skipping delete of %s: not in bucket %s", url, self.bucket)
            return
        try:
            # Supabase Python client expects a list of paths.
            self._storage().remove([path])
        except Exception as exc:
            raise UpstreamMediaError(f"Delete of {path} failed") from exc


@lru_cache
def get_media_store() -> MediaStore:
    """
    FastAPI dependency returning the process-wide media store.
    Tests override it with an in-memory fake.
    """
    settings = get_settings()
    return SupabaseMediaStore(
        bucket=settings.STORAGE_BUCKET,
        folder=settings.STORAGE_FOLDER,
    )
