from app.extraction.base import BaseTextExtractor
from app.extraction.exceptions import ExtractionError


class PlainTextAdapter(BaseTextExtractor):
    """Decodes UTF-8 text files (a leading BOM is dropped)."""

    def extract(self, data: bytes) -> str:
        if b"\x00" in data:
            raise ExtractionError("plain text extraction failed: binary content")
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ExtractionError(f"plain text extraction failed: {exc}") from exc
        return text.replace("\r\n", "\n").strip()
