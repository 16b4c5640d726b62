from dataclasses import asdict
from datetime import datetime
from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.analysis.models import Classification, Entity, Sentiment, Topic
from app.database.connection import get_connection
from app.database.models import AnalysisRecord, RunStatus

_COLUMNS = """
    id, document_id, analysis_type, status, confidence, processing_time_ms,
    summary, entities, sentiment, classification, topics, error_message,
    component_errors, metadata, created_at, updated_at
"""


class AnalysisRepository:
    """Database operations for the document_analyses table."""

    def save(self, record: AnalysisRecord) -> AnalysisRecord:
        """Insert or update an analysis run and return it with store timestamps.

        Each call is a single-row upsert, so writes for one record are
        applied atomically and in call order.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO document_analyses (
                        id, document_id, analysis_type, status, confidence,
                        processing_time_ms, summary, entities, sentiment,
                        classification, topics, error_message,
                        component_errors, metadata
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (id) DO UPDATE SET
                        status = EXCLUDED.status,
                        confidence = EXCLUDED.confidence,
                        processing_time_ms = EXCLUDED.processing_time_ms,
                        summary = EXCLUDED.summary,
                        entities = EXCLUDED.entities,
                        sentiment = EXCLUDED.sentiment,
                        classification = EXCLUDED.classification,
                        topics = EXCLUDED.topics,
                        error_message = EXCLUDED.error_message,
                        component_errors = EXCLUDED.component_errors,
                        metadata = EXCLUDED.metadata,
                        updated_at = NOW()
                    RETURNING {_COLUMNS}
                    """,
                    (
                        record.id,
                        record.document_id,
                        record.analysis_type,
                        record.status.value,
                        record.confidence,
                        record.processing_time_ms,
                        record.summary,
                        _jsonb_list(record.entities),
                        _jsonb_value(record.sentiment),
                        _jsonb_value(record.classification),
                        _jsonb_list(record.topics),
                        record.error_message,
                        Jsonb(dict(record.component_errors)),
                        Jsonb(dict(record.metadata)),
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError(f"Saving analysis {record.id} returned no row")
        return _to_record(row)

    def find_by_id(self, analysis_id: str) -> AnalysisRecord | None:
        rows = self._select("WHERE id = %s", (analysis_id,))
        return rows[0] if rows else None

    def find_by_document_id(self, document_id: str) -> list[AnalysisRecord]:
        return self._select("WHERE document_id = %s", (document_id,))

    def find_by_analysis_type(self, analysis_type: str) -> list[AnalysisRecord]:
        return self._select("WHERE analysis_type = %s", (analysis_type,))

    def find_by_min_confidence(self, confidence: float) -> list[AnalysisRecord]:
        return self._select("WHERE confidence >= %s", (confidence,))

    def find_created_between(self, start: datetime, end: datetime) -> list[AnalysisRecord]:
        return self._select("WHERE created_at BETWEEN %s AND %s", (start, end))

    def find_by_processing_time_between(
        self, min_ms: int, max_ms: int
    ) -> list[AnalysisRecord]:
        return self._select("WHERE processing_time_ms BETWEEN %s AND %s", (min_ms, max_ms))

    def find_by_status(self, status: RunStatus) -> list[AnalysisRecord]:
        return self._select("WHERE status = %s", (status.value,))

    def find_by_entity_type(self, entity_type: str) -> list[AnalysisRecord]:
        return self._select(
            "WHERE entities @> %s",
            (Jsonb([{"type": entity_type}]),),
        )

    def search_summaries(self, term: str) -> list[AnalysisRecord]:
        return self._select("WHERE summary ILIKE %s", (f"%{term}%",))

    def find_latest(self, document_id: str, analysis_type: str) -> AnalysisRecord | None:
        """Most recent run of one analysis type for a document."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS} FROM document_analyses
                    WHERE document_id = %s AND analysis_type = %s
                    ORDER BY created_at DESC
                    LIMIT 1
                    """,
                    (document_id, analysis_type),
                )
                row = cur.fetchone()
        return _to_record(row) if row is not None else None

    def _select(self, where: str, params: tuple[Any, ...]) -> list[AnalysisRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM document_analyses {where} ORDER BY created_at",
                    params,
                )
                rows = cur.fetchall()
        return [_to_record(row) for row in rows]


def _jsonb_list(values: list[Any] | None) -> Jsonb | None:
    if values is None:
        return None
    return Jsonb([asdict(v) for v in values])


def _jsonb_value(value: Any) -> Jsonb | None:
    if value is None:
        return None
    return Jsonb(asdict(value))


def _to_record(row: dict[str, Any]) -> AnalysisRecord:
    entities = row["entities"]
    topics = row["topics"]
    sentiment = row["sentiment"]
    classification = row["classification"]
    return AnalysisRecord(
        id=str(row["id"]),
        document_id=str(row["document_id"]),
        analysis_type=row["analysis_type"],
        status=RunStatus(row["status"]),
        confidence=row["confidence"],
        processing_time_ms=row["processing_time_ms"],
        summary=row["summary"],
        entities=[Entity(**e) for e in entities] if entities is not None else None,
        sentiment=Sentiment(**sentiment) if sentiment is not None else None,
        classification=(
            Classification(**classification) if classification is not None else None
        ),
        topics=[Topic(**t) for t in topics] if topics is not None else None,
        error_message=row["error_message"],
        component_errors=dict(row["component_errors"] or {}),
        metadata=dict(row["metadata"] or {}),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
