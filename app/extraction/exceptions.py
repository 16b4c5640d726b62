class ExtractionError(Exception):
    """Raised when text cannot be extracted from unreadable or corrupt input."""


class UnsupportedContentTypeError(ExtractionError):
    """Raised when no extractor handles the declared content type."""
