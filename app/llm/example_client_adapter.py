"""Example completion client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseCompletionClient and register the provider in CompletionClientFactory.
"""

import json
from typing import ClassVar

from app.llm.client_base import BaseCompletionClient


class ExampleClientAdapter(BaseCompletionClient):
    """Example adapter that answers each analysis prompt with fixed valid output.

    No network calls. Useful for local development, tests, and as a template
    for building real provider adapters (OpenAI, Anthropic, etc.).
    """

    ENTITIES_RESPONSE: ClassVar[dict[str, object]] = {
        "entities": [{"text": "ACME Corp", "type": "ORGANIZATION", "confidence": 0.9}],
    }
    SENTIMENT_RESPONSE: ClassVar[dict[str, object]] = {
        "sentiment": "NEUTRAL",
        "confidence": 0.8,
        "scores": {"positive": 0.1, "negative": 0.1, "neutral": 0.8},
    }
    CLASSIFICATION_RESPONSE: ClassVar[str] = "OTHER"
    SUMMARY_RESPONSE: ClassVar[str] = "Example summary of the document."

    def complete(self, *, prompt: str, max_tokens: int, temperature: float) -> str:
        _ = max_tokens, temperature
        # Only the instruction line decides; document text follows it.
        instruction = prompt.split("\n", 1)[0]
        if instruction.startswith("Extract named entities"):
            return json.dumps(self.ENTITIES_RESPONSE)
        if instruction.startswith("Analyze the sentiment"):
            return json.dumps(self.SENTIMENT_RESPONSE)
        if instruction.startswith("Classify"):
            return self.CLASSIFICATION_RESPONSE
        return self.SUMMARY_RESPONSE
