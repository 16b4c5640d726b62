from datetime import date
from pathlib import Path

from app.errors import StorageError
from app.logging.logger import Log
from app.storage.base import BaseBlobStore


def dated_blob_path(storage_root: Path, day: date, name: str) -> Path:
    """Build path to a blob: {storage_root}/{yyyy}/{mm}/{dd}/{name}"""
    return storage_root / f"{day:%Y}" / f"{day:%m}" / f"{day:%d}" / name


class LocalBlobStore(BaseBlobStore):
    """Stores blobs on the local filesystem in date-partitioned folders.

    Locators are paths relative to the storage root, so the root can move
    without rewriting records.
    """

    def __init__(self, storage_root: Path) -> None:
        self._root = storage_root.resolve()

    def put(self, data: bytes, suggested_name: str) -> str:
        if Path(suggested_name).name != suggested_name or suggested_name in ("", ".", ".."):
            raise StorageError(f"Invalid storage name: {suggested_name!r}")
        path = dated_blob_path(self._root, date.today(), suggested_name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store blob {suggested_name}: {exc}") from exc
        locator = path.relative_to(self._root).as_posix()
        Log.info(f"Stored {len(data)} bytes at {locator}")
        return locator

    def get(self, locator: str) -> bytes:
        path = self._resolve(locator)
        if not path.exists():
            raise StorageError(f"Blob not found: {locator}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read blob {locator}: {exc}") from exc

    def delete(self, locator: str) -> None:
        path = self._resolve(locator)
        if not path.exists():
            Log.warning(f"Blob not found for deletion: {locator}")
            return
        try:
            path.unlink()
        except OSError as exc:
            raise StorageError(f"Failed to delete blob {locator}: {exc}") from exc
        Log.info(f"Deleted blob {locator}")

    def _resolve(self, locator: str) -> Path:
        path = (self._root / locator).resolve()
        if not path.is_relative_to(self._root):
            raise StorageError(f"Locator escapes storage root: {locator}")
        return path
