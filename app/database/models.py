from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from app.analysis.models import Classification, Entity, Sentiment, Topic


class IngestionStatus(str, Enum):
    PENDING = "PENDING"
    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class RunStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


@dataclass(frozen=True)
class DocumentRecord:
    """Represents a row from the documents table.

    Records are immutable; lifecycle transitions produce new values via
    dataclasses.replace().
    """

    id: str
    filename: str
    content_type: str
    file_size_bytes: int
    storage_locator: str
    checksum_sha256: str
    status: IngestionStatus = IngestionStatus.PENDING
    original_filename: str | None = None
    extracted_text: str | None = None
    language: str | None = None
    page_count: int | None = None
    error_message: str | None = None
    classification: str | None = None
    confidence_score: float | None = None
    entities: list[Entity] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    metadata: dict[str, object] = field(default_factory=dict)
    uploaded_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class AnalysisRecord:
    """Represents a row from the document_analyses table."""

    id: str
    document_id: str
    analysis_type: str
    status: RunStatus = RunStatus.PENDING
    confidence: float | None = None
    processing_time_ms: int | None = None
    summary: str | None = None
    entities: list[Entity] | None = None
    sentiment: Sentiment | None = None
    classification: Classification | None = None
    topics: list[Topic] | None = None
    error_message: str | None = None
    component_errors: dict[str, str] = field(default_factory=dict)
    metadata: dict[str, object] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_results(self) -> bool:
        return any(
            value is not None
            for value in (self.summary, self.entities, self.sentiment, self.classification)
        )
