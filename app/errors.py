class DocIntelError(Exception):
    """Base exception for caller-facing ingestion and analysis errors."""


class NotFoundError(DocIntelError):
    """Raised when a referenced document or analysis does not exist."""


class PreconditionError(DocIntelError):
    """Raised when an operation is requested before its required prior state."""


class InvalidArgumentError(DocIntelError):
    """Raised for externally supplied values outside the accepted set."""


class StorageError(DocIntelError):
    """Raised when a blob or record cannot be persisted."""
