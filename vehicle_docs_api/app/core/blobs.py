"""
Blob store abstraction and the local filesystem implementation.

Uploaded document files are stored opaquely under a path of the form
``<userId>/<vehicleId>/<name>``.  Uploads never overwrite: writing to a
path that already holds an object raises ``BlobConflictError``.  Read
access is granted through time‑boxed signed URLs.
"""

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import quote, urlencode

from .config import settings
from .exceptions import BadRequestError, BlobConflictError, StorageError
from .security import sign_blob_path


logger = logging.getLogger(__name__)


class BlobStore(ABC):
    """Path-addressed object storage."""

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` at ``path`` if nothing is there yet; return the path."""

    @abstractmethod
    def create_signed_url(self, path: str, expires_in: int) -> str:
        """Return a URL granting read access to ``path`` for ``expires_in`` seconds."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the object at ``path`` (missing objects are ignored)."""

    def ensure_bucket(self) -> None:
        """Create the storage container if it does not exist yet."""


def normalize_blob_path(path: str) -> str:
    """Reject absolute paths and ``..`` segments; return the cleaned path."""
    parts = PurePosixPath(path).parts
    if not parts or path.startswith("/") or any(part in ("..", ".", "") for part in parts):
        raise BadRequestError("Invalid file path")
    return "/".join(parts)


class LocalBlobStore(BlobStore):
    """Blob store that keeps files in a directory on the local disk.

    Signed URLs point at the ``/files`` endpoint of this service, which
    checks the HMAC signature and expiry before streaming the file.
    """

    def __init__(self, root: Optional[str] = None, base_url: Optional[str] = None) -> None:
        self.root = Path(root or settings.blob_root).resolve()
        self.base_url = (base_url or settings.public_base_url).rstrip("/") + settings.api_prefix

    def resolve(self, path: str) -> Path:
        return self.root / normalize_blob_path(path)

    def ensure_bucket(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("Local blob store ready at %s", self.root)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = self.resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # "xb" fails when the file exists: uploads never overwrite.
            with open(target, "xb") as fh:
                fh.write(data)
        except FileExistsError as exc:
            raise BlobConflictError(detail=f"Object already exists at {path}") from exc
        except OSError as exc:
            raise StorageError("Failed to upload file", detail=str(exc)) from exc
        logger.debug("Stored %d bytes (%s) at %s", len(data), content_type, path)
        return normalize_blob_path(path)

    def create_signed_url(self, path: str, expires_in: int) -> str:
        clean = normalize_blob_path(path)
        if not self.resolve(clean).is_file():
            raise StorageError("Failed to generate download URL", detail=f"No object at {clean}")
        expires_at = int(time.time()) + expires_in
        query = urlencode({"expires": expires_at, "signature": sign_blob_path(clean, expires_at)})
        return f"{self.base_url}/files/{quote(clean)}?{query}"

    def delete(self, path: str) -> None:
        target = self.resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError("Failed to delete file", detail=str(exc)) from exc
