from dataclasses import asdict
from datetime import datetime
from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.analysis.models import Entity
from app.database.connection import get_connection
from app.database.models import DocumentRecord, IngestionStatus

_COLUMNS = """
    id, filename, original_filename, content_type, file_size_bytes,
    storage_locator, checksum_sha256, extracted_text, language, page_count,
    status, error_message, classification, confidence_score, entities, tags,
    metadata, uploaded_by, created_at, updated_at
"""


class DocumentRepository:
    """Database operations for the documents table."""

    def save(self, record: DocumentRecord) -> DocumentRecord:
        """Insert or update a document and return it with store timestamps."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO documents (
                        id, filename, original_filename, content_type,
                        file_size_bytes, storage_locator, checksum_sha256,
                        extracted_text, language, page_count, status,
                        error_message, classification, confidence_score,
                        entities, tags, metadata, uploaded_by
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s,
                            %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (id) DO UPDATE SET
                        filename = EXCLUDED.filename,
                        original_filename = EXCLUDED.original_filename,
                        content_type = EXCLUDED.content_type,
                        file_size_bytes = EXCLUDED.file_size_bytes,
                        storage_locator = EXCLUDED.storage_locator,
                        checksum_sha256 = EXCLUDED.checksum_sha256,
                        extracted_text = EXCLUDED.extracted_text,
                        language = EXCLUDED.language,
                        page_count = EXCLUDED.page_count,
                        status = EXCLUDED.status,
                        error_message = EXCLUDED.error_message,
                        classification = EXCLUDED.classification,
                        confidence_score = EXCLUDED.confidence_score,
                        entities = EXCLUDED.entities,
                        tags = EXCLUDED.tags,
                        metadata = EXCLUDED.metadata,
                        uploaded_by = EXCLUDED.uploaded_by,
                        updated_at = NOW()
                    RETURNING {_COLUMNS}
                    """,
                    (
                        record.id,
                        record.filename,
                        record.original_filename,
                        record.content_type,
                        record.file_size_bytes,
                        record.storage_locator,
                        record.checksum_sha256,
                        record.extracted_text,
                        record.language,
                        record.page_count,
                        record.status.value,
                        record.error_message,
                        record.classification,
                        record.confidence_score,
                        Jsonb([asdict(e) for e in record.entities]),
                        Jsonb(list(record.tags)),
                        Jsonb(dict(record.metadata)),
                        record.uploaded_by,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError(f"Saving document {record.id} returned no row")
        return _to_record(row)

    def find_by_id(self, document_id: str) -> DocumentRecord | None:
        """Find a document by ID, or None if it does not exist."""
        rows = self._select("WHERE id = %s", (document_id,))
        return rows[0] if rows else None

    def find_all(self) -> list[DocumentRecord]:
        return self._select("", ())

    def find_by_uploaded_by(self, uploaded_by: str) -> list[DocumentRecord]:
        return self._select("WHERE uploaded_by = %s", (uploaded_by,))

    def find_by_content_type(self, content_type: str) -> list[DocumentRecord]:
        return self._select("WHERE content_type = %s", (content_type,))

    def find_by_status(self, status: IngestionStatus) -> list[DocumentRecord]:
        return self._select("WHERE status = %s", (status.value,))

    def find_by_classification(self, classification: str) -> list[DocumentRecord]:
        return self._select("WHERE classification = %s", (classification,))

    def find_by_checksum(self, checksum_sha256: str) -> list[DocumentRecord]:
        return self._select("WHERE checksum_sha256 = %s", (checksum_sha256,))

    def find_by_tags(self, tags: list[str]) -> list[DocumentRecord]:
        """Documents carrying at least one of the given tags."""
        return self._select("WHERE tags ?| %s", (list(tags),))

    def search_text(self, term: str) -> list[DocumentRecord]:
        """Case-insensitive substring search over extracted text."""
        return self._select("WHERE extracted_text ILIKE %s", (f"%{term}%",))

    def find_created_between(self, start: datetime, end: datetime) -> list[DocumentRecord]:
        return self._select("WHERE created_at BETWEEN %s AND %s", (start, end))

    def find_stale(
        self, status: IngestionStatus, older_than_seconds: int, limit: int
    ) -> list[DocumentRecord]:
        """Documents left in a status for longer than the given age."""
        return self._select(
            "WHERE status = %s AND updated_at < NOW() - %s::integer * INTERVAL '1 second'",
            (status.value, older_than_seconds),
            limit=limit,
        )

    def delete_by_id(self, document_id: str) -> bool:
        """Delete a document. Returns False if no row was removed."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM documents WHERE id = %s", (document_id,))
                deleted = cur.rowcount > 0
            conn.commit()
        return deleted

    def _select(
        self, where: str, params: tuple[Any, ...], limit: int | None = None
    ) -> list[DocumentRecord]:
        query = f"SELECT {_COLUMNS} FROM documents {where} ORDER BY created_at"
        if limit is not None:
            query += f" LIMIT {int(limit)}"
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [_to_record(row) for row in rows]


def _to_record(row: dict[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        id=str(row["id"]),
        filename=row["filename"],
        original_filename=row["original_filename"],
        content_type=row["content_type"],
        file_size_bytes=row["file_size_bytes"],
        storage_locator=row["storage_locator"],
        checksum_sha256=row["checksum_sha256"],
        extracted_text=row["extracted_text"],
        language=row["language"],
        page_count=row["page_count"],
        status=IngestionStatus(row["status"]),
        error_message=row["error_message"],
        classification=row["classification"],
        confidence_score=row["confidence_score"],
        entities=[Entity(**item) for item in row["entities"] or []],
        tags=list(row["tags"] or []),
        metadata=dict(row["metadata"] or {}),
        uploaded_by=row["uploaded_by"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
