import logging
import os
from pathlib import Path

from snapdrop.core.config import get_settings
from snapdrop.core.errors import BlobNotFound, CollaboratorError

logger = logging.getLogger("snapdrop.storage")


class BlobStore:
    """Filesystem-backed blob bucket addressed by relative storage paths."""

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root)

    def _resolve(self, storage_path: str) -> Path:
        full = (self.root / storage_path).resolve()
        if self.root.resolve() not in full.parents:
            raise CollaboratorError("Storage path escapes bucket")
        return full

    def upload(self, storage_path: str, data: bytes) -> None:
        full = self._resolve(storage_path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            # Never overwrite an existing blob.
            with open(full, "xb") as f:
                f.write(data)
        except OSError as exc:
            logger.error("Failed to upload blob %s: %s", storage_path, exc)
            raise CollaboratorError("Failed to upload blob") from exc

    def download(self, storage_path: str) -> bytes:
        full = self._resolve(storage_path)
        try:
            with open(full, "rb") as f:
                return f.read()
        except FileNotFoundError as exc:
            raise BlobNotFound() from exc
        except OSError as exc:
            logger.error("Failed to download blob %s: %s", storage_path, exc)
            raise CollaboratorError("Failed to download blob") from exc

    def remove(self, storage_paths: list[str]) -> int:
        """Delete blobs; missing ones are skipped. Returns how many were removed."""
        removed = 0
        failed: list[str] = []
        for storage_path in storage_paths:
            full = self._resolve(storage_path)
            try:
                full.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError:
                logger.exception("Failed to remove blob %s", storage_path)
                failed.append(storage_path)
                continue
            logger.debug("Removed blob %s", storage_path)
            if full.parent != self.root.resolve():
                try:
                    full.parent.rmdir()
                except OSError:
                    # still holds sibling blobs
                    pass
        if failed:
            raise CollaboratorError(f"Failed to remove {len(failed)} blob(s)")
        return removed


_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store is None:
        _blob_store = BlobStore(get_settings().storage_dir)
    return _blob_store
