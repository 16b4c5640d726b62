import time
import uuid
from dataclasses import replace
from datetime import datetime

from app.analysis.confidence import mean
from app.analysis.engine import AnalysisEngine
from app.analysis.handlers import TASK_HANDLERS, TaskHandler
from app.analysis.models import (
    AnalysisType,
    ClassificationResult,
    EntityExtractionResult,
    SentimentResult,
    SummarizationResult,
    TaskOutcome,
    TaskResult,
)
from app.config.settings import Settings
from app.database.models import AnalysisRecord, RunStatus
from app.database.repositories.analysis_repository import AnalysisRepository
from app.errors import InvalidArgumentError, NotFoundError, PreconditionError, StorageError
from app.ingestion.lifecycle import DocumentLifecycle
from app.llm.factory import CompletionClientFactory
from app.logging.logger import Log


def resolve_analysis_type(analysis_type: str) -> AnalysisType:
    """Map a requested type name to an AnalysisType, ignoring case.

    Raises:
        InvalidArgumentError: if the name is not a known analysis type.
    """
    try:
        return AnalysisType(analysis_type.strip().lower())
    except ValueError:
        raise InvalidArgumentError(f"Unsupported analysis type: {analysis_type}") from None


def describe_error(exc: Exception) -> str:
    if isinstance(exc, TimeoutError):
        return f"TimeoutError: {exc}"
    return str(exc) or exc.__class__.__name__


def apply_result(record: AnalysisRecord, result: TaskResult) -> AnalysisRecord:
    """Copy one handler result onto the matching record field."""
    if isinstance(result, EntityExtractionResult):
        return replace(record, entities=list(result.entities))
    if isinstance(result, ClassificationResult):
        return replace(record, classification=result.classification)
    if isinstance(result, SummarizationResult):
        return replace(record, summary=result.summary)
    if isinstance(result, SentimentResult):
        return replace(record, sentiment=result.sentiment)
    raise TypeError(f"Unexpected task result: {type(result).__name__}")


def overall_confidence(outcomes: list[TaskOutcome]) -> float:
    """Mean of entity mean confidence (when entities exist), classification
    confidence and sentiment score, over whichever are present."""
    values: list[float | None] = []
    for outcome in outcomes:
        result = outcome.result
        if not outcome.succeeded:
            continue
        if isinstance(result, EntityExtractionResult):
            if result.entities:
                values.append(result.confidence)
        elif isinstance(result, ClassificationResult):
            values.append(result.confidence)
        elif isinstance(result, SentimentResult):
            values.append(result.sentiment.score)
    return mean(values)


class AnalysisOrchestrator:
    """Runs analysis requests against processed documents.

    Each call to ``analyze`` produces exactly one AnalysisRecord that moves
    PENDING -> PROCESSING -> COMPLETED | FAILED.
    """

    def __init__(
        self,
        *,
        documents: DocumentLifecycle,
        analysis_repo: AnalysisRepository,
        engine: AnalysisEngine,
        handlers: dict[AnalysisType, TaskHandler] | None = None,
    ) -> None:
        self._documents = documents
        self._analysis_repo = analysis_repo
        self._engine = engine
        self._handlers = handlers if handlers is not None else TASK_HANDLERS

    def analyze(self, document_id: str, analysis_type: str) -> AnalysisRecord:
        """Run one analysis and return its terminal record.

        Once the PENDING record exists every failure is recorded on the
        returned record instead of raised.

        Raises:
            NotFoundError: if the document does not exist.
            PreconditionError: if the document has no extracted text.
            StorageError: if the PENDING record cannot be persisted.
        """
        document = self._documents.get(document_id)
        if document is None:
            raise NotFoundError(f"Document not found: {document_id}")
        text = document.extracted_text
        if not text or not text.strip():
            raise PreconditionError(f"Document {document_id} has no extracted text")

        record = self._store(
            AnalysisRecord(
                id=str(uuid.uuid4()),
                document_id=document_id,
                analysis_type=analysis_type.strip().lower(),
            )
        )
        Log.info(
            f"Analysis created: {record.analysis_type}",
            analysis_id=record.id,
            document_id=document_id,
        )

        started = time.monotonic()
        try:
            record = self._store(replace(record, status=RunStatus.PROCESSING))
            task = resolve_analysis_type(analysis_type)
            if task is AnalysisType.COMPREHENSIVE:
                record = self._run_comprehensive(record, text)
            else:
                record = self._run_atomic(record, task, text)
        except Exception as exc:
            Log.error(f"Analysis failed: {exc}", analysis_id=record.id)
            record = self._failed(record, describe_error(exc))
        record = replace(record, processing_time_ms=int((time.monotonic() - started) * 1000))

        try:
            record = self._store(record)
        except StorageError as exc:
            Log.error(f"Could not record result of analysis {record.id}: {exc}")
            return record
        Log.info(
            f"Analysis finished in {record.processing_time_ms} ms",
            analysis_id=record.id,
            status=record.status.value,
        )
        if record.status is RunStatus.COMPLETED:
            self._documents.record_analysis(document_id, record)
        return record

    def get(self, analysis_id: str) -> AnalysisRecord | None:
        return self._analysis_repo.find_by_id(analysis_id)

    def list_for_document(self, document_id: str) -> list[AnalysisRecord]:
        return self._analysis_repo.find_by_document_id(document_id)

    def list_by_type(self, analysis_type: str) -> list[AnalysisRecord]:
        return self._analysis_repo.find_by_analysis_type(analysis_type.strip().lower())

    def list_by_min_confidence(self, confidence: float) -> list[AnalysisRecord]:
        return self._analysis_repo.find_by_min_confidence(confidence)

    def list_created_between(self, start: datetime, end: datetime) -> list[AnalysisRecord]:
        return self._analysis_repo.find_created_between(start, end)

    def list_by_processing_time_between(self, min_ms: int, max_ms: int) -> list[AnalysisRecord]:
        return self._analysis_repo.find_by_processing_time_between(min_ms, max_ms)

    def list_by_status(self, status: RunStatus) -> list[AnalysisRecord]:
        return self._analysis_repo.find_by_status(status)

    def list_by_entity_type(self, entity_type: str) -> list[AnalysisRecord]:
        return self._analysis_repo.find_by_entity_type(entity_type)

    def search_summaries(self, term: str) -> list[AnalysisRecord]:
        return self._analysis_repo.search_summaries(term)

    def latest_for(self, document_id: str, analysis_type: str) -> AnalysisRecord | None:
        """Most recent record for a (document, type) pair."""
        return self._analysis_repo.find_latest(document_id, analysis_type.strip().lower())

    def close(self) -> None:
        """Release the capability call executor."""
        self._engine.close()

    def _run_atomic(
        self, record: AnalysisRecord, task: AnalysisType, text: str
    ) -> AnalysisRecord:
        result = self._handlers[task](self._engine, text)
        return replace(
            apply_result(record, result),
            status=RunStatus.COMPLETED,
            confidence=result.confidence,
            error_message=None,
        )

    def _run_comprehensive(self, record: AnalysisRecord, text: str) -> AnalysisRecord:
        outcomes = [self._run_handler(task, text) for task in AnalysisType.atomic()]

        component_errors = {
            outcome.analysis_type.value: describe_error(outcome.error)
            for outcome in outcomes
            if outcome.error is not None
        }
        if len(component_errors) == len(outcomes):
            return self._failed(
                replace(record, component_errors=component_errors),
                "All analysis components failed: "
                + "; ".join(f"{k}: {v}" for k, v in component_errors.items()),
            )

        for outcome in outcomes:
            if outcome.succeeded:
                record = apply_result(record, outcome.result)
        return replace(
            record,
            status=RunStatus.COMPLETED,
            confidence=overall_confidence(outcomes),
            component_errors=component_errors,
            error_message=None,
        )

    def _run_handler(self, task: AnalysisType, text: str) -> TaskOutcome:
        try:
            return TaskOutcome(analysis_type=task, result=self._handlers[task](self._engine, text))
        except Exception as exc:
            Log.warning(f"{task.value} component failed: {exc}")
            return TaskOutcome(analysis_type=task, error=exc)

    def _failed(self, record: AnalysisRecord, message: str) -> AnalysisRecord:
        return replace(
            record,
            status=RunStatus.FAILED,
            confidence=None,
            summary=None,
            entities=None,
            sentiment=None,
            classification=None,
            topics=None,
            error_message=message,
        )

    def _store(self, record: AnalysisRecord) -> AnalysisRecord:
        try:
            return self._analysis_repo.save(record)
        except Exception as exc:
            raise StorageError(f"Failed to persist analysis {record.id}: {exc}") from exc


def build_orchestrator(settings: Settings, documents: DocumentLifecycle) -> AnalysisOrchestrator:
    """Build an AnalysisOrchestrator with the configured capability client."""
    engine = AnalysisEngine(
        client=CompletionClientFactory.create(settings),
        timeout_seconds=settings.llm_timeout_seconds,
        classification_max_chars=settings.classification_max_chars,
    )
    return AnalysisOrchestrator(
        documents=documents,
        analysis_repo=AnalysisRepository(),
        engine=engine,
    )
