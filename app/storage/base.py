from abc import ABC, abstractmethod


class BaseBlobStore(ABC):
    """Contract for content storage backends."""

    @abstractmethod
    def put(self, data: bytes, suggested_name: str) -> str:
        """Store bytes and return an opaque locator.

        Args:
            data: Raw file content.
            suggested_name: Server-generated storage name. Never a caller path.

        Raises:
            StorageError: if the write fails.
        """

    @abstractmethod
    def get(self, locator: str) -> bytes:
        """Return the bytes stored under a locator.

        Raises:
            StorageError: if the blob is missing or unreadable.
        """

    @abstractmethod
    def delete(self, locator: str) -> None:
        """Remove a blob. A missing blob is not an error.

        Raises:
            StorageError: if the blob exists but cannot be removed.
        """
