"""
Local file storage for payment proofs and ticket images
"""

from pathlib import Path
from typing import Optional
import logging
import uuid

from app.config import settings

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """
    Stores bytes under a root directory and hands back public URLs.

    ``save(b"...", "payments", "proof.png")`` writes
    ``<root>/payments/proof.png`` and returns ``<url_prefix>/payments/proof.png``.
    """

    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, data: bytes, folder: str, filename: Optional[str] = None, extension: str = "") -> str:
        if not filename:
            filename = f"{uuid.uuid4().hex}{extension}"
        # Never let a client-supplied name escape the folder
        filename = Path(filename).name

        directory = self.root / folder
        directory.mkdir(parents=True, exist_ok=True)
        (directory / filename).write_bytes(data)

        url = f"{self.url_prefix}/{folder}/{filename}"
        logger.debug(f"Stored {len(data)} bytes at {url}")
        return url

    def resolve(self, url: str) -> Optional[Path]:
        """Map a stored URL back to its file, or None if it is not ours or missing"""
        if not url or not url.startswith(f"{self.url_prefix}/"):
            return None
        relative = url[len(self.url_prefix) + 1:]
        path = (self.root / relative).resolve()
        if self.root.resolve() not in path.parents or not path.is_file():
            return None
        return path

    def delete(self, url: str) -> bool:
        """Remove a stored file; False when the URL is not ours or already gone"""
        path = self.resolve(url)
        if path is None:
            return False
        path.unlink(missing_ok=True)
        logger.debug(f"Removed {url}")
        return True


def get_storage() -> LocalFileStorage:
    """
    Dependency returning the configured upload storage
    """
    return LocalFileStorage(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
