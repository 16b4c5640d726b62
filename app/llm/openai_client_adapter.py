import httpx
import openai

from app.llm.client_base import BaseCompletionClient
from app.llm.exceptions import CapabilityError, CapabilityTimeoutError


class OpenAIClientAdapter(BaseCompletionClient):
    """Completion client built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._model = model
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def complete(self, *, prompt: str, max_tokens: int, temperature: float) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise CapabilityTimeoutError(f"AI provider timed out: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError) as exc:
            raise CapabilityError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise CapabilityError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise CapabilityError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise CapabilityError("AI returned empty response")
        return content
