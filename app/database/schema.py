from app.database.connection import get_connection

DOCUMENTS_DDL = """
CREATE TABLE IF NOT EXISTS documents (
    id                UUID PRIMARY KEY,
    filename          TEXT NOT NULL,
    original_filename TEXT,
    content_type      TEXT NOT NULL,
    file_size_bytes   BIGINT NOT NULL,
    storage_locator   TEXT NOT NULL,
    checksum_sha256   CHAR(64) NOT NULL,
    extracted_text    TEXT,
    language          TEXT,
    page_count        INTEGER,
    status            TEXT NOT NULL,
    error_message     TEXT,
    classification    TEXT,
    confidence_score  DOUBLE PRECISION,
    entities          JSONB NOT NULL DEFAULT '[]'::jsonb,
    tags              JSONB NOT NULL DEFAULT '[]'::jsonb,
    metadata          JSONB NOT NULL DEFAULT '{}'::jsonb,
    uploaded_by       TEXT,
    created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS documents_status_idx ON documents (status);
CREATE INDEX IF NOT EXISTS documents_uploaded_by_idx ON documents (uploaded_by);
CREATE INDEX IF NOT EXISTS documents_checksum_idx ON documents (checksum_sha256);
"""

DOCUMENT_ANALYSES_DDL = """
CREATE TABLE IF NOT EXISTS document_analyses (
    id                 UUID PRIMARY KEY,
    document_id        UUID NOT NULL REFERENCES documents (id) ON DELETE CASCADE,
    analysis_type      TEXT NOT NULL,
    status             TEXT NOT NULL,
    confidence         DOUBLE PRECISION,
    processing_time_ms BIGINT,
    summary            TEXT,
    entities           JSONB,
    sentiment          JSONB,
    classification     JSONB,
    topics             JSONB,
    error_message      TEXT,
    component_errors   JSONB NOT NULL DEFAULT '{}'::jsonb,
    metadata           JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at         TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at         TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS document_analyses_document_idx
    ON document_analyses (document_id, analysis_type);
CREATE INDEX IF NOT EXISTS document_analyses_status_idx ON document_analyses (status);
"""


def ensure_schema() -> None:
    """Create the documents and document_analyses tables if missing."""
    with get_connection() as conn:
        conn.execute(DOCUMENTS_DDL)
        conn.execute(DOCUMENT_ANALYSES_DDL)
        conn.commit()
