"""Unit tests for DocumentTextExtractor format detection and limits."""

from unittest.mock import MagicMock, patch

import pytest

from services.ai.document_extractor import DOCX_CONTENT_TYPE, DocumentTextExtractor
from services.ai.exceptions import UnsupportedFormat
from tests.fixtures.summary_fixtures import docx_bytes


def _fake_pdf(*page_texts):
    pdf = MagicMock()
    pdf.pages = [MagicMock(**{"extract_text.return_value": t}) for t in page_texts]
    ctx = MagicMock()
    ctx.__enter__.return_value = pdf
    return ctx


def test_plain_text_by_content_type():
    extractor = DocumentTextExtractor(max_bytes=1024)
    text = extractor.extract(b"Backend Engineer\nPython", "job", "text/plain")
    assert text == "Backend Engineer\nPython"


def test_plain_text_by_extension_strips_bom():
    extractor = DocumentTextExtractor(max_bytes=1024)
    text = extractor.extract("\ufeffJob description".encode(), "job.md", None)
    assert text == "Job description"


def test_invalid_utf8_is_unsupported():
    extractor = DocumentTextExtractor(max_bytes=1024)
    with pytest.raises(UnsupportedFormat, match="UTF-8"):
        extractor.extract(b"\xff\xfe\xfa", "job.txt", "text/plain")


def test_docx_paragraphs_and_table_cells():
    extractor = DocumentTextExtractor(max_bytes=1024 * 1024)
    data = docx_bytes(
        "Data Engineer",
        "   ",
        "Build ETL pipelines",
        table=[["Salary", "SGD 6,000 - 8,000"], ["Location", ""]],
    )

    text = extractor.extract(data, "jd.docx", DOCX_CONTENT_TYPE)

    assert text == (
        "Data Engineer\nBuild ETL pipelines\nSalary | SGD 6,000 - 8,000\nLocation"
    )


def test_docx_detected_by_extension_alone():
    extractor = DocumentTextExtractor(max_bytes=1024 * 1024)
    data = docx_bytes("QA Lead")
    assert extractor.extract(data, "CV.DOCX", "application/octet-stream") == "QA Lead"


def test_corrupt_docx_is_unsupported():
    extractor = DocumentTextExtractor(max_bytes=1024)
    with pytest.raises(UnsupportedFormat, match="Word document could not be read"):
        extractor.extract(b"PK\x03\x04...", "resume.docx", DOCX_CONTENT_TYPE)


@pytest.mark.parametrize(
    "filename,content_type",
    [("resume.doc", None), ("resume", "application/msword")],
)
def test_legacy_word_documents_are_rejected(filename, content_type):
    extractor = DocumentTextExtractor(max_bytes=1024)
    with pytest.raises(UnsupportedFormat, match="Legacy .doc"):
        extractor.extract(b"\xd0\xcf\x11\xe0", filename, content_type)


def test_unknown_format_is_rejected():
    extractor = DocumentTextExtractor(max_bytes=1024)
    with pytest.raises(UnsupportedFormat, match="Unsupported document format"):
        extractor.extract(b"PK\x03\x04", "deck.pptx", "application/octet-stream")


def test_oversize_upload_is_rejected_before_parsing():
    extractor = DocumentTextExtractor(max_bytes=10)
    with pytest.raises(UnsupportedFormat, match="too large"):
        extractor.extract(b"x" * 11, "job.txt", "text/plain")


def test_whitespace_only_text_is_rejected():
    extractor = DocumentTextExtractor(max_bytes=1024)
    with pytest.raises(UnsupportedFormat, match="No extractable text"):
        extractor.extract(b"  \n\t ", "job.txt", "text/plain")


def test_pdf_detected_by_magic_bytes_joins_pages():
    extractor = DocumentTextExtractor(max_bytes=1024)
    with patch(
        "services.ai.document_extractor.pdfplumber.open",
        return_value=_fake_pdf("Page one", None, "Page three"),
    ) as mock_open:
        text = extractor.extract(b"%PDF-1.7 ...", "upload.bin", None)

    assert text == "Page one\nPage three"
    mock_open.assert_called_once()


def test_pdf_without_text_layer_is_rejected():
    extractor = DocumentTextExtractor(max_bytes=1024)
    with patch(
        "services.ai.document_extractor.pdfplumber.open",
        return_value=_fake_pdf(None, ""),
    ):
        with pytest.raises(UnsupportedFormat, match="No extractable text"):
            extractor.extract(b"%PDF-1.4", "scan.pdf", "application/pdf")


def test_password_protected_pdf():
    extractor = DocumentTextExtractor(max_bytes=1024)
    with patch(
        "services.ai.document_extractor.pdfplumber.open",
        side_effect=Exception("PDF is encrypted and requires a password"),
    ):
        with pytest.raises(UnsupportedFormat, match="password-protected"):
            extractor.extract(b"%PDF-1.4", "locked.pdf", "application/pdf")


def test_corrupt_pdf():
    extractor = DocumentTextExtractor(max_bytes=1024)
    with patch(
        "services.ai.document_extractor.pdfplumber.open",
        side_effect=ValueError("bad xref"),
    ):
        with pytest.raises(UnsupportedFormat, match="could not be read"):
            extractor.extract(b"garbage", "broken.pdf", None)
