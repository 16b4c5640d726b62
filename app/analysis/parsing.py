"""Turns raw capability text into typed results.

The capability is a black box and may answer with malformed structure, so
each builder substitutes a fixed default instead of raising.
"""

import json
import re
from typing import Any

from app.analysis.models import Classification, DocumentCategory, Entity, Sentiment

SENTIMENT_LABELS = frozenset({"POSITIVE", "NEGATIVE", "NEUTRAL"})

DEFAULT_SENTIMENT = Sentiment(
    label="NEUTRAL",
    score=0.5,
    positive_score=0.33,
    negative_score=0.33,
    neutral_score=0.34,
)

_SEPARATOR_RE = re.compile(r"[\s\-]+")


class MalformedResponseError(ValueError):
    """Raised when a capability response does not have the requested shape."""


def strip_code_fence(raw: str) -> str:
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    return cleaned.strip()


def parse_json_object(raw: str) -> dict[str, Any]:
    """Parse a JSON object, tolerating a surrounding markdown code fence.

    Raises:
        MalformedResponseError: if the text is not a JSON object.
    """
    try:
        parsed = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Invalid JSON response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise MalformedResponseError("JSON response must be an object")
    return parsed


def build_entities(raw: str) -> list[Entity]:
    """Build entities from ``{"entities": [...]}``; empty list when malformed.

    Items without a non-empty ``text`` and ``type`` string are dropped.
    """
    try:
        payload = parse_json_object(raw)
    except MalformedResponseError:
        return []
    items = payload.get("entities")
    if not isinstance(items, list):
        return []
    return [entity for entity in (_build_entity(item) for item in items) if entity]


def build_sentiment(raw: str) -> Sentiment:
    """Build a sentiment; DEFAULT_SENTIMENT when malformed or unlabeled."""
    try:
        payload = parse_json_object(raw)
    except MalformedResponseError:
        return DEFAULT_SENTIMENT
    label = payload.get("sentiment")
    if not isinstance(label, str) or label.strip().upper() not in SENTIMENT_LABELS:
        return DEFAULT_SENTIMENT
    scores = payload.get("scores")
    if not isinstance(scores, dict):
        scores = {}
    return Sentiment(
        label=label.strip().upper(),
        score=_probability(payload.get("confidence")),
        positive_score=_probability(scores.get("positive")),
        negative_score=_probability(scores.get("negative")),
        neutral_score=_probability(scores.get("neutral")),
    )


def build_classification(raw: str) -> Classification:
    """Build a classification from a bare category token or a JSON object.

    Unknown categories map to OTHER. Confidence stays None unless the
    capability supplied one.
    """
    confidence: float | None = None
    tags: list[str] = []
    token = raw
    try:
        payload = parse_json_object(raw)
    except MalformedResponseError:
        pass
    else:
        token = str(payload.get("category", ""))
        confidence = _probability(payload.get("confidence"))
        raw_tags = payload.get("tags")
        if isinstance(raw_tags, list):
            tags = [t for t in raw_tags if isinstance(t, str)]
    return Classification(
        category=normalize_category(token).value,
        confidence=confidence,
        tags=tags,
    )


def normalize_category(token: str) -> DocumentCategory:
    """Map free-form capability output to the category vocabulary.

    The earliest vocabulary token in the text wins; anything else is OTHER.
    """
    cleaned = _SEPARATOR_RE.sub("_", strip_code_fence(token).upper())
    best: tuple[int, DocumentCategory] | None = None
    for category in DocumentCategory:
        match = re.search(rf"(?<![A-Z]){category.value}(?![A-Z])", cleaned)
        if match and (best is None or match.start() < best[0]):
            best = (match.start(), category)
    return best[1] if best is not None else DocumentCategory.OTHER


def build_summary(raw: str) -> str:
    """Return the trimmed summary text.

    Raises:
        MalformedResponseError: if the capability returned no text.
    """
    summary = strip_code_fence(raw)
    if not summary:
        raise MalformedResponseError("Capability returned an empty summary")
    return summary


def _build_entity(raw: Any) -> Entity | None:
    if not isinstance(raw, dict):
        return None
    text = raw.get("text")
    entity_type = raw.get("type")
    if not isinstance(text, str) or not text.strip():
        return None
    if not isinstance(entity_type, str) or not entity_type.strip():
        return None
    normalized = raw.get("normalizedValue", raw.get("normalized_value"))
    metadata = raw.get("metadata")
    return Entity(
        type=entity_type.strip().upper(),
        text=text,
        confidence=_probability(raw.get("confidence")),
        start_offset=_offset(raw.get("startOffset", raw.get("start_offset"))),
        end_offset=_offset(raw.get("endOffset", raw.get("end_offset"))),
        normalized_value=normalized if isinstance(normalized, str) else None,
        metadata=metadata if isinstance(metadata, dict) else {},
    )


def _probability(raw: Any) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    value = float(raw)
    if not 0.0 <= value <= 1.0:
        return None
    return value


def _offset(raw: Any) -> int | None:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        return None
    return raw
