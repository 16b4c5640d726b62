import hashlib


class ChecksumService:
    """Content hash used for deduplication and integrity checks."""

    def compute(self, data: bytes) -> str:
        """Return the lowercase SHA-256 hex digest of data."""
        return hashlib.sha256(data).hexdigest()

    def verify(self, data: bytes, expected: str) -> bool:
        return self.compute(data) == expected.lower()
