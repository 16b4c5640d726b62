"""Capability invocation per analysis task."""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from pathlib import Path

from app.analysis.models import AnalysisType, Classification, DocumentCategory, Entity, Sentiment
from app.analysis.parsing import (
    build_classification,
    build_entities,
    build_sentiment,
    build_summary,
)
from app.analysis.prompt_loader import load_prompt_templates
from app.llm.client_base import BaseCompletionClient
from app.llm.exceptions import CapabilityError, CapabilityTimeoutError
from app.logging.logger import Log

DEFAULT_CLASSIFICATION_MAX_CHARS = 2000
DEFAULT_MAX_CONCURRENT_CALLS = 8

RawResult = list[Entity] | Classification | str | Sentiment


@dataclass(frozen=True)
class TaskParameters:
    max_tokens: int
    temperature: float


TASK_PARAMETERS: dict[AnalysisType, TaskParameters] = {
    AnalysisType.ENTITY_EXTRACTION: TaskParameters(max_tokens=2000, temperature=0.3),
    AnalysisType.CLASSIFICATION: TaskParameters(max_tokens=50, temperature=0.1),
    AnalysisType.SUMMARIZATION: TaskParameters(max_tokens=2000, temperature=0.3),
    AnalysisType.SENTIMENT_ANALYSIS: TaskParameters(max_tokens=2000, temperature=0.3),
}


class AnalysisEngine:
    """Asks the language-model capability for one task and parses the answer.

    Every call is bounded by ``timeout_seconds``. Parse failures fall back to
    the defaults in ``app.analysis.parsing``; capability failures propagate,
    except for classification, which degrades to OTHER unless the call timed
    out.
    """

    def __init__(
        self,
        *,
        client: BaseCompletionClient,
        timeout_seconds: float,
        classification_max_chars: int = DEFAULT_CLASSIFICATION_MAX_CHARS,
        prompt_dir: Path | None = None,
        max_concurrent_calls: int = DEFAULT_MAX_CONCURRENT_CALLS,
    ) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._classification_max_chars = classification_max_chars
        self._templates = load_prompt_templates(prompt_dir)
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent_calls,
            thread_name_prefix="capability",
        )
        self._tasks: dict[AnalysisType, Callable[[str], RawResult]] = {
            AnalysisType.ENTITY_EXTRACTION: self.extract_entities,
            AnalysisType.CLASSIFICATION: self.classify,
            AnalysisType.SUMMARIZATION: self.summarize,
            AnalysisType.SENTIMENT_ANALYSIS: self.analyze_sentiment,
        }

    def invoke(self, task: AnalysisType, text: str) -> RawResult:
        """Run one atomic task against text.

        Raises:
            ValueError: for the composite COMPREHENSIVE type.
            CapabilityError: if the capability fails (see class docstring).
        """
        handler = self._tasks.get(task)
        if handler is None:
            raise ValueError(f"'{task.value}' is not an atomic analysis task")
        return handler(text)

    def extract_entities(self, text: str) -> list[Entity]:
        raw = self._complete(AnalysisType.ENTITY_EXTRACTION, text)
        entities = build_entities(raw)
        Log.info(f"Capability returned {len(entities)} entities")
        return entities

    def analyze_sentiment(self, text: str) -> Sentiment:
        raw = self._complete(AnalysisType.SENTIMENT_ANALYSIS, text)
        return build_sentiment(raw)

    def classify(self, text: str) -> Classification:
        prefix = text[: self._classification_max_chars]
        try:
            raw = self._complete(
                AnalysisType.CLASSIFICATION,
                prefix,
                categories="\n".join(f"- {c.value}" for c in DocumentCategory),
            )
        except CapabilityTimeoutError:
            raise
        except CapabilityError as exc:
            Log.warning(f"Classification capability failed, defaulting to OTHER: {exc}")
            return Classification(category=DocumentCategory.OTHER.value)
        classification = build_classification(raw)
        Log.info(f"Document classified as: {classification.category}")
        return classification

    def summarize(self, text: str) -> str:
        raw = self._complete(AnalysisType.SUMMARIZATION, text)
        return build_summary(raw)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _complete(self, task: AnalysisType, text: str, **placeholders: str) -> str:
        prompt = self._templates[task].format(text=text, **placeholders)
        params = TASK_PARAMETERS[task]
        Log.debug(f"{task.value} prompt:\n{prompt}")
        future = self._executor.submit(
            self._client.complete,
            prompt=prompt,
            max_tokens=params.max_tokens,
            temperature=params.temperature,
        )
        try:
            raw = future.result(timeout=self._timeout_seconds)
        except CapabilityTimeoutError:
            raise
        except FutureTimeoutError as exc:
            future.cancel()
            raise CapabilityTimeoutError(
                f"{task.value} capability call timed out after {self._timeout_seconds}s"
            ) from exc
        Log.debug(f"{task.value} raw response:\n{raw}")
        return raw
