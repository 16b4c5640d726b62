from dataclasses import dataclass, field
from enum import Enum


class AnalysisType(str, Enum):
    """Closed set of analysis kinds an analysis run can request."""

    ENTITY_EXTRACTION = "entity_extraction"
    CLASSIFICATION = "classification"
    SUMMARIZATION = "summarization"
    SENTIMENT_ANALYSIS = "sentiment_analysis"
    COMPREHENSIVE = "comprehensive"

    @classmethod
    def atomic(cls) -> tuple["AnalysisType", ...]:
        """Analysis kinds that map to exactly one capability invocation."""
        return (
            cls.ENTITY_EXTRACTION,
            cls.CLASSIFICATION,
            cls.SUMMARIZATION,
            cls.SENTIMENT_ANALYSIS,
        )


class DocumentCategory(str, Enum):
    """Vocabulary the capability must classify documents into."""

    INVOICE = "INVOICE"
    CONTRACT = "CONTRACT"
    RESUME = "RESUME"
    LEGAL_DOCUMENT = "LEGAL_DOCUMENT"
    FINANCIAL_REPORT = "FINANCIAL_REPORT"
    TECHNICAL_MANUAL = "TECHNICAL_MANUAL"
    BUSINESS_CORRESPONDENCE = "BUSINESS_CORRESPONDENCE"
    RESEARCH_PAPER = "RESEARCH_PAPER"
    OTHER = "OTHER"


@dataclass(frozen=True)
class Entity:
    """A named entity found in document text."""

    type: str
    text: str
    confidence: float | None = None
    start_offset: int | None = None
    end_offset: int | None = None
    normalized_value: str | None = None
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class Sentiment:
    """Overall sentiment label with per-polarity scores."""

    label: str
    score: float | None = None
    positive_score: float | None = None
    negative_score: float | None = None
    neutral_score: float | None = None


@dataclass(frozen=True)
class Classification:
    """Document category with its confidence."""

    category: str
    confidence: float | None = None
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Topic:
    """A topic discussed in the document."""

    name: str
    relevance: float | None = None
    keywords: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EntityExtractionResult:
    entities: list[Entity]
    confidence: float


@dataclass(frozen=True)
class ClassificationResult:
    classification: Classification
    confidence: float


@dataclass(frozen=True)
class SummarizationResult:
    summary: str
    confidence: float


@dataclass(frozen=True)
class SentimentResult:
    sentiment: Sentiment
    confidence: float | None


TaskResult = (
    EntityExtractionResult | ClassificationResult | SummarizationResult | SentimentResult
)


@dataclass(frozen=True)
class TaskOutcome:
    """Result or captured error of one atomic handler inside a run."""

    analysis_type: AnalysisType
    result: TaskResult | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.result is not None
