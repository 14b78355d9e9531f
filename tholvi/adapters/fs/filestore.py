import logging
import os
from pathlib import Path

from tholvi.domain.errors import DependencyFailure

logger = logging.getLogger(__name__)


class FileSystemStore:
    """Bucketed file store served under a public URL prefix.

    Objects live at <base_path>/<bucket>/<path> and are reachable at
    <public_base_url>/<bucket>/<path>.
    """

    def __init__(self, base_path: str, public_base_url: str, buckets: list[str] | None = None):
        self.base_path = Path(base_path).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self.buckets = set(buckets) if buckets is not None else None
        if not self.base_path.exists():
            os.makedirs(self.base_path, exist_ok=True)

    def _safe_path(self, bucket: str, path: str) -> Path:
        if self.buckets is not None and bucket not in self.buckets:
            raise ValueError(f"Unknown bucket: {bucket}")
        root = (self.base_path / bucket).resolve()
        # Prevent traversal
        target = (root / path).resolve()
        if not target.is_relative_to(root) or target == root:
            raise ValueError(f"Path traversal attempt detected: {path}")
        return target

    def put(self, bucket: str, path: str, data: bytes) -> str:
        """Save bytes and return the public URL."""
        target = self._safe_path(bucket, path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error("Writing %s/%s failed: %s", bucket, path, e)
            raise DependencyFailure(f"File store unavailable: {e}") from e

        relative = target.relative_to(self.base_path).as_posix()
        logger.info("Stored %d bytes at %s", len(data), relative)
        return f"{self.public_base_url}/{relative}"

    def get(self, bucket: str, path: str) -> bytes:
        """Retrieve bytes. Raises FileNotFoundError."""
        target = self._safe_path(bucket, path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {bucket}/{path}")
        with open(target, "rb") as f:
            return f.read()
