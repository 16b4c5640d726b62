import time

from app.config.settings import Settings
from app.database.models import DocumentRecord, IngestionStatus
from app.database.repositories.document_repository import DocumentRepository
from app.ingestion.lifecycle import DocumentLifecycle
from app.logging.logger import Log

RECOVERABLE_STATUSES = (IngestionStatus.UPLOADED, IngestionStatus.PROCESSING)


class Worker:
    """Recovery poll loop: sleep -> find stale documents -> reschedule.

    Picks up documents the ProcessingPool rejected under backpressure, and
    documents left in PROCESSING by a crashed process.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        lifecycle: DocumentLifecycle,
        settings: Settings,
    ) -> None:
        self._doc_repo = doc_repo
        self._lifecycle = lifecycle
        self._settings = settings

    def run(self, max_sweeps: int | None = None) -> None:
        """Main poll loop. Runs forever until interrupted.

        If max_sweeps is set, stop after that many sweeps (for testing).
        """
        Log.info("Recovery worker started, polling for stale documents")
        sweeps = 0
        try:
            while max_sweeps is None or sweeps < max_sweeps:
                scheduled = self.sweep()
                sweeps += 1
                if max_sweeps is not None and sweeps >= max_sweeps:
                    break
                if scheduled == 0:
                    Log.debug("No stale documents, sleeping")
                time.sleep(self._settings.recovery_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def sweep(self) -> int:
        """Reschedule every stale document. Returns how many were queued."""
        scheduled = 0
        for record in self._find_stale():
            if not self._lifecycle.schedule(record):
                Log.info("Processing pool is full, deferring remaining documents")
                break
            Log.info(f"Rescheduled stale document {record.id} ({record.status.value})")
            scheduled += 1
        return scheduled

    def _find_stale(self) -> list[DocumentRecord]:
        """Load stale documents. Gracefully handle DB errors."""
        limit = self._settings.processing_queue_capacity
        stale: list[DocumentRecord] = []
        try:
            for status in RECOVERABLE_STATUSES:
                stale.extend(
                    self._doc_repo.find_stale(
                        status, self._settings.recovery_stale_after_seconds, limit
                    )
                )
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return []
        return stale
