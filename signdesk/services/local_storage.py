"""
Blob storage backed by a local directory.
"""
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

from signdesk.config import Settings, get_settings
from signdesk.core.errors import StorageFailure
from signdesk.utils.resource_loader import ensure_dir

logger = logging.getLogger(__name__)


class LocalBlobStorage:
    """Stores blobs as files and hands out ``file://`` references."""

    def __init__(self, root: Optional[Path] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.root = Path(root) if root is not None else settings.data_dir / 'blobs'

    def store(self, data: bytes, content_type: str) -> str:
        extension = mimetypes.guess_extension(content_type) or '.bin'
        try:
            path = ensure_dir(self.root) / f"{uuid.uuid4().hex}{extension}"
            path.write_bytes(data)
        except OSError as e:
            raise StorageFailure(f"Could not store blob: {e}") from e

        logger.debug("Stored %d bytes as %s", len(data), path.name)
        return path.resolve().as_uri()

    def fetch(self, ref: str) -> bytes:
        try:
            return self._path(ref).read_bytes()
        except OSError as e:
            raise StorageFailure(f"Could not fetch {ref}: {e}") from e

    def remove(self, ref: str) -> None:
        try:
            self._path(ref).unlink()
        except FileNotFoundError:
            logger.debug("Blob %s already removed", ref)
        except OSError as e:
            raise StorageFailure(f"Could not remove {ref}: {e}") from e

    def _path(self, ref: str) -> Path:
        parsed = urlparse(ref)
        if parsed.scheme != 'file':
            raise StorageFailure(f"Not a local blob reference: {ref}")
        return Path(url2pathname(parsed.path))
