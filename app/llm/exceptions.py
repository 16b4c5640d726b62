class CapabilityError(Exception):
    """Raised when the language-model provider call fails."""


class CapabilityTimeoutError(CapabilityError, TimeoutError):
    """Raised when the language-model provider does not answer in time."""
