import os
import uuid
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import close_pool, get_connection, init_pool
from app.database.models import DocumentRecord, IngestionStatus
from app.database.repositories.document_repository import DocumentRepository
from app.database.schema import ensure_schema


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docintel_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        ensure_schema()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    """Document ids to delete after the test; analyses go with them."""
    cleanup: list[str] = []
    yield cleanup
    if not cleanup:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for document_id in cleanup:
                cur.execute("DELETE FROM documents WHERE id = %s", (document_id,))
        conn.commit()


@pytest.fixture
def seed_document(integration_cleanup: list[str]) -> DocumentRecord:
    record = DocumentRecord(
        id=str(uuid.uuid4()),
        filename=f"{uuid.uuid4()}.txt",
        original_filename="contract.txt",
        content_type="text/plain",
        file_size_bytes=64,
        storage_locator="2026/01/02/contract.txt",
        checksum_sha256="b" * 64,
        status=IngestionStatus.COMPLETED,
        extracted_text="This contract is made between ACME Corp and Ann Smith.",
        language="en",
        page_count=1,
        tags=["legal", "2026"],
        uploaded_by=f"it-{uuid.uuid4()}",
    )
    integration_cleanup.append(record.id)
    return DocumentRepository().save(record)
