"""
Filesystem storage bucket.

Objects live under STORAGE_DIR/<bucket>/<path> and are served by the
static mount at /storage, so the public URL is derived from the path.
"""

from __future__ import annotations

import time
from pathlib import Path

import structlog
from starlette.concurrency import run_in_threadpool

from utsav.core.config import settings

logger = structlog.get_logger(__name__)


class StorageBucket:
    """One public bucket on local disk."""

    def __init__(self, name: str, root: str | Path | None = None) -> None:
        self.name = name
        self.root = Path(root or settings.STORAGE_DIR) / name

    def object_path(self, filename: str) -> str:
        """Bucket-relative path for a new upload: public/<epoch-millis>.<ext>."""
        ext = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
        return f"public/{int(time.time() * 1000)}.{ext.lower()}"

    async def upload(self, path: str, content: bytes) -> None:
        """Write an object. Disk I/O runs in the threadpool."""
        target = self._resolve(path)
        await run_in_threadpool(_write, target, content)
        logger.info("storage_object_written", bucket=self.name, path=path, size=len(content))

    async def remove(self, path: str) -> None:
        """Delete an object. Missing objects are ignored."""
        target = self._resolve(path)
        await run_in_threadpool(target.unlink, missing_ok=True)
        logger.info("storage_object_removed", bucket=self.name, path=path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def public_url(self, path: str) -> str:
        return f"{settings.STORAGE_PUBLIC_URL.rstrip('/')}/{self.name}/{path}"

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ValueError(f"Path escapes bucket: {path}")
        return target


def _write(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)


def get_image_bucket() -> StorageBucket:
    return StorageBucket(settings.STORAGE_BUCKET)
