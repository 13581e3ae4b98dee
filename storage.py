"""
Local filesystem image storage.

Mirrors the bucket/path interface of the hosted storage the front end used:
upload() returns the public URL and the object path, delete() never raises
for missing objects so a successful record update is not interrupted.
"""
import logging
import re
import uuid
from pathlib import Path
from urllib.parse import urlencode

from errors import StorageError
from image_compression import ImageFile

logger = logging.getLogger(__name__)

_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class LocalStorage:
    """Stores objects as files under <root>/<bucket>/<path>."""

    def __init__(self, root: str | Path, public_base_url: str, buckets: list[str] | tuple[str, ...]) -> None:
        self._root = Path(root)
        self._public_base_url = public_base_url.rstrip("/")
        self._buckets = set(buckets)

    def _object_path(self, bucket: str, path: str) -> Path:
        if bucket not in self._buckets:
            raise StorageError(f"Unknown bucket: {bucket}")
        if not path or not _SAFE_NAME_RE.match(path):
            raise StorageError(f"Invalid object path: {path!r}")
        return self._root / bucket / path

    def upload(self, file: ImageFile, bucket: str) -> dict:
        """Store a file under a random name that keeps its extension."""
        ext = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else "bin"
        path = f"{uuid.uuid4()}.{ext}"
        target = self._object_path(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(file.data)
        except OSError as e:
            logger.error("Image upload failed: %s", e)
            raise StorageError(f"Failed to upload image: {e}") from e

        logger.info("Uploaded %s to %s/%s (%d bytes)", file.filename, bucket, path, file.size)
        return {"public_url": self.public_url(bucket, path), "path": path}

    def download(self, bucket: str, path: str) -> bytes:
        target = self._object_path(bucket, path)
        if not target.is_file():
            raise StorageError(f"Object not found: {bucket}/{path}")
        return target.read_bytes()

    def delete(self, bucket: str, path: str) -> None:
        if not path:
            return
        target = self._object_path(bucket, path)
        try:
            target.unlink()
        except FileNotFoundError:
            logger.error("Image deletion error: %s/%s does not exist", bucket, path)
        except OSError as e:
            logger.error("Image deletion error: %s", e)

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._public_base_url}/storage/{bucket}/{path}"

    def transform_url(
        self,
        bucket: str,
        path: str,
        width: int | None = None,
        quality: int = 75,
        fmt: str = "webp",
    ) -> str:
        """Public URL with render-time resize parameters appended."""
        url = self.public_url(bucket, path)
        if not width:
            return url
        return f"{url}?{urlencode({'width': width, 'quality': quality, 'format': fmt})}"

    def local_path(self, bucket: str, path: str) -> Path:
        """Filesystem location of an object, for serving it over HTTP."""
        return self._object_path(bucket, path)
