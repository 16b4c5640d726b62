"""Document ingestion state machine.

PENDING -> UPLOADED -> PROCESSING -> COMPLETED | FAILED

``ingest`` is synchronous up to UPLOADED; extraction runs on the
ProcessingPool and its failures are recorded on the document, never raised.
"""

import re
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path, PurePosixPath

from app.config.settings import Settings
from app.database.models import AnalysisRecord, DocumentRecord, IngestionStatus, RunStatus
from app.database.repositories.document_repository import DocumentRepository
from app.errors import NotFoundError, StorageError
from app.extraction.factory import TextExtractorFactory
from app.extraction.text_extractor import TextExtractor
from app.ingestion.checksum import ChecksumService
from app.logging.logger import Log
from app.storage.base import BaseBlobStore
from app.storage.local_blob_store import LocalBlobStore
from app.worker.pool import ProcessingPool, QueueFullError
from app.worker.single_flight import KeyedLock

_SAFE_EXTENSION_RE = re.compile(r"^\.[a-z0-9]{1,10}$")


def storage_name_for(declared_name: str) -> str:
    """Generate a unique storage name, keeping only a safe extension.

    The declared name never contributes path components.
    """
    suffix = PurePosixPath(declared_name.replace("\\", "/")).suffix.lower()
    extension = suffix if _SAFE_EXTENSION_RE.match(suffix) else ""
    return f"{uuid.uuid4()}{extension}"


@dataclass(frozen=True)
class ProcessingOutcome:
    """Result of one background processing attempt."""

    document_id: str
    record: DocumentRecord | None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class DocumentLifecycle:
    """Owns DocumentRecord transitions: ingest, process, delete."""

    def __init__(
        self,
        *,
        doc_repo: DocumentRepository,
        blob_store: BaseBlobStore,
        text_extractor: TextExtractor,
        checksum_service: ChecksumService,
        pool: ProcessingPool,
        locks: KeyedLock | None = None,
    ) -> None:
        self._doc_repo = doc_repo
        self._blob_store = blob_store
        self._text_extractor = text_extractor
        self._checksum_service = checksum_service
        self._pool = pool
        self._locks = locks if locks is not None else KeyedLock()

    def ingest(
        self,
        file_bytes: bytes,
        declared_name: str,
        content_type: str,
        uploaded_by: str | None,
        *,
        tags: list[str] | None = None,
        metadata: dict[str, object] | None = None,
    ) -> DocumentRecord:
        """Store the file, persist an UPLOADED record and schedule extraction.

        Returns the UPLOADED record; extraction finishes later.

        Raises:
            StorageError: if the blob or the record cannot be written.
        """
        Log.info(f"Ingesting document: {declared_name} ({len(file_bytes)} bytes)")
        filename = storage_name_for(declared_name)
        locator = self._blob_store.put(file_bytes, filename)

        record = DocumentRecord(
            id=str(uuid.uuid4()),
            filename=filename,
            original_filename=declared_name,
            content_type=content_type,
            file_size_bytes=len(file_bytes),
            storage_locator=locator,
            checksum_sha256=self._checksum_service.compute(file_bytes),
            status=IngestionStatus.UPLOADED,
            tags=list(tags or []),
            metadata=dict(metadata or {}),
            uploaded_by=uploaded_by,
        )
        try:
            saved = self._doc_repo.save(record)
        except Exception as exc:
            self._release_blob(locator)
            raise StorageError(f"Failed to persist document {record.id}: {exc}") from exc

        self.schedule(saved)
        Log.info("Document uploaded", document_id=saved.id, status=saved.status.value)
        return saved

    def schedule(self, record: DocumentRecord) -> bool:
        """Queue background processing. False when the pool is full."""
        try:
            self._pool.submit(self.process, record)
        except QueueFullError as exc:
            Log.warning(f"Document {record.id} left for recovery: {exc}")
            return False
        return True

    def process(self, record: DocumentRecord) -> ProcessingOutcome:
        """Extract text for a document and record the terminal status.

        Concurrent calls for the same document are serialized. Failures are
        persisted as FAILED and returned in the outcome.
        """
        with self._locks.hold(record.id):
            Log.info("Processing document", document_id=record.id)
            try:
                current = self._doc_repo.find_by_id(record.id)
            except Exception as exc:
                Log.error(f"Could not load document {record.id}: {exc}")
                return ProcessingOutcome(record.id, None, exc)
            if current is None:
                Log.warning(f"Document {record.id} was deleted before processing")
                return ProcessingOutcome(
                    record.id, None, NotFoundError(f"Document not found: {record.id}")
                )

            try:
                current = self._doc_repo.save(
                    replace(
                        current,
                        status=IngestionStatus.PROCESSING,
                        extracted_text=None,
                        language=None,
                        page_count=None,
                        error_message=None,
                    )
                )
                data = self._blob_store.get(current.storage_locator)
                if not self._checksum_service.verify(data, current.checksum_sha256):
                    raise StorageError(f"Checksum mismatch for blob {current.storage_locator}")
                extracted = self._text_extractor.extract(data, current.content_type)
                completed = self._doc_repo.save(
                    replace(
                        current,
                        status=IngestionStatus.COMPLETED,
                        extracted_text=extracted.text,
                        language=extracted.language,
                        page_count=extracted.page_count,
                        error_message=None,
                    )
                )
            except Exception as exc:
                return self._fail(current, exc)

            Log.info(
                f"Document processed: {len(extracted.text)} chars, "
                f"{extracted.page_count} pages, language={extracted.language}",
                document_id=completed.id,
                status=completed.status.value,
            )
            return ProcessingOutcome(completed.id, completed)

    def delete(self, document_id: str) -> bool:
        """Release the blob (best-effort) and remove the record.

        Returns False if the document does not exist.
        """
        with self._locks.hold(document_id):
            record = self._doc_repo.find_by_id(document_id)
            if record is None:
                return False
            self._release_blob(record.storage_locator)
            self._doc_repo.delete_by_id(document_id)
        Log.info("Document deleted", document_id=document_id)
        return True

    def record_analysis(self, document_id: str, analysis: AnalysisRecord) -> DocumentRecord | None:
        """Copy a completed analysis' headline results onto its document.

        Best-effort: failures are logged and None is returned.
        """
        if analysis.status is not RunStatus.COMPLETED:
            return None
        try:
            with self._locks.hold(document_id):
                current = self._doc_repo.find_by_id(document_id)
                if current is None:
                    return None
                updated = replace(
                    current,
                    classification=(
                        analysis.classification.category
                        if analysis.classification is not None
                        else current.classification
                    ),
                    entities=(
                        list(analysis.entities)
                        if analysis.entities is not None
                        else current.entities
                    ),
                    confidence_score=(
                        analysis.confidence
                        if analysis.confidence is not None
                        else current.confidence_score
                    ),
                )
                return self._doc_repo.save(updated)
        except Exception as exc:
            Log.warning(
                f"Could not attach analysis {analysis.id} to document "
                f"{document_id}: {exc}"
            )
            return None

    def get(self, document_id: str) -> DocumentRecord | None:
        return self._doc_repo.find_by_id(document_id)

    def list_all(self) -> list[DocumentRecord]:
        return self._doc_repo.find_all()

    def list_by_uploader(self, uploaded_by: str) -> list[DocumentRecord]:
        return self._doc_repo.find_by_uploaded_by(uploaded_by)

    def list_by_content_type(self, content_type: str) -> list[DocumentRecord]:
        return self._doc_repo.find_by_content_type(content_type)

    def list_by_status(self, status: IngestionStatus) -> list[DocumentRecord]:
        return self._doc_repo.find_by_status(status)

    def list_by_classification(self, classification: str) -> list[DocumentRecord]:
        return self._doc_repo.find_by_classification(classification)

    def list_by_checksum(self, checksum_sha256: str) -> list[DocumentRecord]:
        """Documents with identical content."""
        return self._doc_repo.find_by_checksum(checksum_sha256.lower())

    def list_by_tags(self, tags: list[str]) -> list[DocumentRecord]:
        return self._doc_repo.find_by_tags(tags)

    def search_text(self, term: str) -> list[DocumentRecord]:
        return self._doc_repo.search_text(term)

    def list_created_between(self, start: datetime, end: datetime) -> list[DocumentRecord]:
        return self._doc_repo.find_created_between(start, end)

    def _fail(self, current: DocumentRecord, exc: Exception) -> ProcessingOutcome:
        Log.error(f"Error processing document: {exc}", document_id=current.id)
        failed = replace(
            current,
            status=IngestionStatus.FAILED,
            extracted_text=None,
            language=None,
            page_count=None,
            error_message=str(exc) or exc.__class__.__name__,
        )
        try:
            failed = self._doc_repo.save(failed)
        except Exception as save_exc:
            Log.error(f"Could not record failure for document {current.id}: {save_exc}")
        return ProcessingOutcome(current.id, failed, exc)

    def _release_blob(self, locator: str) -> None:
        try:
            self._blob_store.delete(locator)
        except Exception as exc:
            Log.warning(f"Could not delete blob {locator}: {exc}")


def build_lifecycle(settings: Settings, pool: ProcessingPool | None = None) -> DocumentLifecycle:
    """Build a DocumentLifecycle with all required adapters."""
    return DocumentLifecycle(
        doc_repo=DocumentRepository(),
        blob_store=LocalBlobStore(Path(settings.storage_root)),
        text_extractor=TextExtractorFactory.create(settings),
        checksum_service=ChecksumService(),
        pool=pool
        if pool is not None
        else ProcessingPool(
            workers=settings.processing_workers,
            capacity=settings.processing_queue_capacity,
        ),
    )
