import asyncio
import time
from pathlib import Path, PurePosixPath

from fastapi import HTTPException

from swasthya.core.config import settings
from swasthya.core.logger import logger

class StorageService:
    """
    Document bucket on the local filesystem. Keys look like
    ``{unique_worker_id}/{epoch_millis}_{filename}``.
    """

    def __init__(self, root: str | Path | None = None, bucket: str | None = None):
        self.base_path = Path(root or settings.STORAGE_ROOT) / (bucket or settings.STORAGE_BUCKET)

    @staticmethod
    def build_path(unique_worker_id: str, filename: str) -> str:
        safe_name = PurePosixPath(filename.replace("\\", "/")).name or "document"
        return f"{unique_worker_id}/{int(time.time() * 1000)}_{safe_name}"

    def _resolve(self, path: str) -> Path:
        base = self.base_path.resolve()
        target = (base / path).resolve()
        if base not in target.parents:
            raise ValueError(f"Path escapes bucket: {path}")
        return target

    def _write(self, path: str, data: bytes):
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        # "xb" refuses to overwrite an existing object
        with open(target, "xb") as f:
            f.write(data)

    def _read(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    async def upload(self, path: str, data: bytes):
        await asyncio.to_thread(self._write, path, data)
        logger.info(f"Stored {len(data)} bytes at {path}")

    async def download(self, path: str) -> bytes:
        try:
            return await asyncio.to_thread(self._read, path)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to download {path}: {e}")
            raise HTTPException(status_code=404, detail="Failed to download file")
