"""Text extraction from uploaded documents (PDF, DOCX and plain text)."""

from __future__ import annotations

import io
import logging

import pdfplumber
from docx import Document

from core.config import get_settings
from services.ai.exceptions import UnsupportedFormat


logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}
TEXT_CONTENT_TYPES = {"text/plain", "text/markdown"}
TEXT_EXTENSIONS = (".txt", ".text", ".md")
DOCX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
LEGACY_WORD_CONTENT_TYPE = "application/msword"


class DocumentTextExtractor:
    """Turn an uploaded resume or job description into plain text.

    Format detection looks at the PDF magic bytes first, then the declared
    content type, then the filename extension. Legacy `.doc` files are
    rejected; only the zipped `.docx` format is read.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = (
            max_bytes if max_bytes is not None else get_settings().MAX_UPLOAD_BYTES
        )

    def extract(self, data: bytes, filename: str, content_type: str | None) -> str:
        if len(data) > self.max_bytes:
            raise UnsupportedFormat(
                f"File too large: {len(data)} bytes (limit {self.max_bytes})"
            )

        kind = self._detect(data, filename, content_type)
        if kind == "pdf":
            text = self._extract_pdf(data)
        elif kind == "docx":
            text = self._extract_docx(data)
        elif kind == "text":
            text = self._decode_text(data)
        elif kind == "doc":
            raise UnsupportedFormat("Legacy .doc files are not supported; use .docx")
        else:
            raise UnsupportedFormat(
                "Unsupported document format; upload a PDF, DOCX or plain text file"
            )

        if not text.strip():
            raise UnsupportedFormat("No extractable text found in document")
        return text

    @staticmethod
    def _detect(data: bytes, filename: str, content_type: str | None) -> str | None:
        ctype = (content_type or "").split(";")[0].strip().lower()
        name = (filename or "").lower()
        if data.startswith(b"%PDF-") or ctype in PDF_CONTENT_TYPES:
            return "pdf"
        if name.endswith(".pdf"):
            return "pdf"
        if ctype == DOCX_CONTENT_TYPE or name.endswith(".docx"):
            return "docx"
        if ctype == LEGACY_WORD_CONTENT_TYPE or name.endswith(".doc"):
            return "doc"
        if ctype in TEXT_CONTENT_TYPES or name.endswith(TEXT_EXTENSIONS):
            return "text"
        return None

    @staticmethod
    def _decode_text(data: bytes) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise UnsupportedFormat("Text file is not valid UTF-8") from e

    @staticmethod
    def _extract_pdf(data: bytes) -> str:
        pages: list[str] = []
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for page in pdf.pages:
                    page_text = page.extract_text()
                    if page_text:
                        pages.append(page_text)
        except Exception as e:
            error_msg = str(e).lower()
            if "password" in error_msg or "encrypted" in error_msg:
                raise UnsupportedFormat("PDF is password-protected") from e
            logger.warning("Failed to extract PDF text: %s", type(e).__name__)
            raise UnsupportedFormat("PDF file could not be read") from e
        return "\n".join(pages)

    @staticmethod
    def _extract_docx(data: bytes) -> str:
        try:
            document = Document(io.BytesIO(data))
        except Exception as e:
            logger.warning("Failed to open DOCX: %s", type(e).__name__)
            raise UnsupportedFormat("Word document could not be read") from e

        lines = [p.text for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append(" | ".join(cells))
        return "\n".join(lines)
