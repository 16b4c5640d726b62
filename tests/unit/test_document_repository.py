from collections.abc import Callable
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from psycopg.types.json import Jsonb

from app.analysis.models import Entity
from app.database.models import DocumentRecord, IngestionStatus
from app.database.repositories.document_repository import DocumentRepository

NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _make_row(**overrides: object) -> dict:
    row = {
        "id": "11111111-1111-1111-1111-111111111111",
        "filename": "stored.pdf",
        "original_filename": "invoice.pdf",
        "content_type": "application/pdf",
        "file_size_bytes": 2048,
        "storage_locator": "2026/01/02/stored.pdf",
        "checksum_sha256": "a" * 64,
        "extracted_text": "Invoice",
        "language": "en",
        "page_count": 1,
        "status": "COMPLETED",
        "error_message": None,
        "classification": "INVOICE",
        "confidence_score": 0.85,
        "entities": [
            {
                "type": "ORGANIZATION",
                "text": "ACME",
                "confidence": 0.9,
                "start_offset": None,
                "end_offset": None,
                "normalized_value": None,
                "metadata": {},
            }
        ],
        "tags": ["finance"],
        "metadata": {"source": "scanner"},
        "uploaded_by": "user-1",
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


class TestFindById:
    @patch("app.database.repositories.document_repository.get_connection")
    def test_returns_record_when_found(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [_make_row()]

        result = DocumentRepository().find_by_id("11111111-1111-1111-1111-111111111111")

        assert isinstance(result, DocumentRecord)
        assert result.status is IngestionStatus.COMPLETED
        assert result.entities == [Entity(type="ORGANIZATION", text="ACME", confidence=0.9)]
        assert result.tags == ["finance"]
        assert result.metadata == {"source": "scanner"}
        assert result.created_at == NOW

    @patch("app.database.repositories.document_repository.get_connection")
    def test_returns_none_when_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = []

        assert DocumentRepository().find_by_id("missing") is None

    @patch("app.database.repositories.document_repository.get_connection")
    def test_null_json_columns_become_empty(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [_make_row(entities=None, tags=None, metadata=None)]

        result = DocumentRepository().find_by_id("x")

        assert result is not None
        assert (result.entities, result.tags, result.metadata) == ([], [], {})


class TestSave:
    @patch("app.database.repositories.document_repository.get_connection")
    def test_upserts_and_commits(
        self, mock_get_conn: MagicMock, make_document: Callable[..., DocumentRecord]
    ) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_row(status="UPLOADED")

        saved = DocumentRepository().save(make_document(tags=["finance"]))

        sql, params = mock_cursor.execute.call_args.args
        assert "ON CONFLICT (id) DO UPDATE" in sql
        assert params[10] == "UPLOADED"
        assert isinstance(params[15], Jsonb)
        mock_conn.commit.assert_called_once()
        assert saved.status is IngestionStatus.UPLOADED


class TestQueries:
    @patch("app.database.repositories.document_repository.get_connection")
    def test_find_by_tags_uses_any_key_operator(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = []

        DocumentRepository().find_by_tags(["finance", "q1"])

        sql, params = mock_cursor.execute.call_args.args
        assert "tags ?| %s" in sql
        assert params == (["finance", "q1"],)

    @patch("app.database.repositories.document_repository.get_connection")
    def test_search_text_wraps_term(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = []

        DocumentRepository().search_text("acme")

        sql, params = mock_cursor.execute.call_args.args
        assert "ILIKE" in sql
        assert params == ("%acme%",)

    @patch("app.database.repositories.document_repository.get_connection")
    def test_find_stale_limits_results(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [_make_row(status="UPLOADED")]

        result = DocumentRepository().find_stale(IngestionStatus.UPLOADED, 300, 10)

        sql, params = mock_cursor.execute.call_args.args
        assert sql.rstrip().endswith("LIMIT 10")
        assert params == ("UPLOADED", 300)
        assert result[0].status is IngestionStatus.UPLOADED


class TestDeleteById:
    @patch("app.database.repositories.document_repository.get_connection")
    def test_reports_whether_a_row_was_removed(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        assert DocumentRepository().delete_by_id("x") is True
        mock_conn.commit.assert_called_once()

    @patch("app.database.repositories.document_repository.get_connection")
    def test_returns_false_for_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 0

        assert DocumentRepository().delete_by_id("x") is False
