from abc import ABC, abstractmethod


class BaseCompletionClient(ABC):
    """Contract for provider-specific text-generation clients."""

    @abstractmethod
    def complete(self, *, prompt: str, max_tokens: int, temperature: float) -> str:
        """Return the provider's completion for a prompt as plain text.

        Raises:
            CapabilityError: on network, auth, rate-limit or empty responses.
            CapabilityTimeoutError: if the provider does not answer in time.
        """
