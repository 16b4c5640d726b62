"""Format dispatch plus derived text metadata (language, page estimate)."""

import math
import re
from dataclasses import dataclass

from app.extraction.base import BaseTextExtractor
from app.extraction.exceptions import ExtractionError, UnsupportedContentTypeError

WORDS_PER_PAGE = 500
UNKNOWN_LANGUAGE = "unknown"

_WORD_RE = re.compile(r"[^\W\d_]+")

# Ordered: earlier languages win ties.
_STOPWORDS: dict[str, frozenset[str]] = {
    "en": frozenset(
        {"the", "and", "of", "to", "is", "in", "that", "for", "with", "this", "are", "was"}
    ),
    "de": frozenset(
        {"der", "die", "und", "das", "ist", "nicht", "mit", "den", "von", "ein", "eine", "auf"}
    ),
    "fr": frozenset(
        {"le", "la", "les", "et", "est", "des", "une", "dans", "pour", "pas", "que", "sur"}
    ),
    "es": frozenset(
        {"el", "los", "las", "y", "es", "del", "una", "por", "con", "para", "como", "pero"}
    ),
}


@dataclass(frozen=True)
class ExtractedText:
    """Plain text and metadata derived from it."""

    text: str
    language: str
    page_count: int


def detect_language(text: str) -> str:
    """Guess an ISO 639-1 code from stopword frequency, or 'unknown'."""
    words = [w.lower() for w in _WORD_RE.findall(text)]
    best_language = UNKNOWN_LANGUAGE
    best_hits = 0
    for language, stopwords in _STOPWORDS.items():
        hits = sum(1 for w in words if w in stopwords)
        if hits > best_hits:
            best_language, best_hits = language, hits
    return best_language


def estimate_page_count(text: str) -> int:
    """Estimate pages at WORDS_PER_PAGE words per page, at least one."""
    words = len(text.split())
    return max(1, math.ceil(words / WORDS_PER_PAGE))


def base_content_type(content_type: str) -> str:
    """Strip parameters and normalize case: 'Text/Plain; charset=x' -> 'text/plain'."""
    return content_type.split(";", 1)[0].strip().lower()


class TextExtractor:
    """Routes file bytes to the adapter registered for their content type."""

    TEXTUAL_APPLICATION_TYPES = frozenset(
        {"application/json", "application/xml", "application/x-ndjson"}
    )

    def __init__(
        self,
        *,
        pdf_extractor: BaseTextExtractor,
        text_extractor: BaseTextExtractor,
    ) -> None:
        self._pdf_extractor = pdf_extractor
        self._text_extractor = text_extractor

    def extract(self, data: bytes, content_type: str) -> ExtractedText:
        """Extract text from bytes of the declared content type.

        Raises:
            UnsupportedContentTypeError: if no adapter handles the type.
            ExtractionError: if the bytes are unreadable or yield no text.
        """
        adapter = self._adapter_for(content_type)
        text = adapter.extract(data)
        if not text.strip():
            raise ExtractionError("No text could be extracted from the document")
        return ExtractedText(
            text=text,
            language=detect_language(text),
            page_count=estimate_page_count(text),
        )

    def supports(self, content_type: str) -> bool:
        try:
            self._adapter_for(content_type)
        except UnsupportedContentTypeError:
            return False
        return True

    def _adapter_for(self, content_type: str) -> BaseTextExtractor:
        mime = base_content_type(content_type)
        if mime == "application/pdf":
            return self._pdf_extractor
        if mime.startswith("text/") or mime in self.TEXTUAL_APPLICATION_TYPES:
            return self._text_extractor
        raise UnsupportedContentTypeError(f"Unsupported content type '{content_type}'")
