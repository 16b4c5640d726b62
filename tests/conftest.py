import io
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.database.models import DocumentRecord, IngestionStatus


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Invoice from ACME Corp")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def english_text() -> str:
    """1500 words of English prose."""
    return " ".join(["the report is ready"] * 375)


@pytest.fixture()
def echo_repo() -> MagicMock:
    """Repository mock whose save() returns the record it was given."""
    repo = MagicMock()
    repo.save.side_effect = lambda record: record
    return repo


def _make_document(**overrides: object) -> DocumentRecord:
    values: dict[str, object] = {
        "id": "11111111-1111-1111-1111-111111111111",
        "filename": "stored.txt",
        "original_filename": "report.txt",
        "content_type": "text/plain",
        "file_size_bytes": 11,
        "storage_locator": "2026/01/02/stored.txt",
        "checksum_sha256": "a" * 64,
        "status": IngestionStatus.UPLOADED,
    }
    values.update(overrides)
    return DocumentRecord(**values)  # type: ignore[arg-type]


@pytest.fixture()
def make_document() -> Callable[..., DocumentRecord]:
    """Factory for DocumentRecord values with overridable fields."""
    return _make_document
