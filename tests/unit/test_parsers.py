"""Unit tests for uploaded-file parsing (txt, pdf, docx, pptx)."""

from __future__ import annotations

import io

import docx
import fitz
import pytest
from pptx import Presentation
from pptx.util import Inches

from src.models.document import DocumentSource
from src.services.documents.parsers import (
    MAX_FILE_SIZE,
    MIME_DOCX,
    MIME_PDF,
    MIME_PPTX,
    MIME_TXT,
    count_words,
    parse_uploaded_file,
    resolve_mime_type,
    title_from_filename,
)
from src.utils.errors import DocumentParseError, DocumentTooLargeError, UnsupportedDocumentFormat


def _pdf_bytes(text: str) -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


def _docx_bytes() -> bytes:
    document = docx.Document()
    document.add_paragraph("First paragraph")
    document.add_paragraph("   ")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Region"
    table.rows[0].cells[1].text = "North"
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _pptx_bytes() -> bytes:
    presentation = Presentation()
    for text in ("Welcome slide", "Closing slide"):
        slide = presentation.slides.add_slide(presentation.slide_layouts[6])
        box = slide.shapes.add_textbox(Inches(1), Inches(1), Inches(4), Inches(1))
        box.text_frame.text = text
    buffer = io.BytesIO()
    presentation.save(buffer)
    return buffer.getvalue()


# ─── Helpers ──────────────────────────────────────────────────────


def test_resolve_mime_prefers_supported_declared_type():
    assert resolve_mime_type("notes.bin", "text/plain; charset=utf-8") == MIME_TXT


def test_resolve_mime_falls_back_to_extension():
    assert resolve_mime_type("deck.PPTX", "application/octet-stream") == MIME_PPTX
    assert resolve_mime_type("paper.pdf", None) == MIME_PDF


def test_resolve_mime_unknown():
    assert resolve_mime_type("image.png", "image/png") == "image/png"


def test_title_from_filename():
    assert title_from_filename("quarterly_report-final.pdf") == "quarterly report final"
    assert title_from_filename("README") == "README"


def test_count_words():
    assert count_words("  one two\nthree  ") == 3
    assert count_words("") == 0


# ─── Text ─────────────────────────────────────────────────────────


def test_parse_txt():
    parsed = parse_uploaded_file("my-notes.txt", "text/plain", b"Hello world")
    assert parsed.content == "Hello world"
    assert parsed.title == "my notes"
    assert parsed.source == DocumentSource.UPLOAD_TXT
    assert parsed.mime_type == MIME_TXT


def test_parse_txt_invalid_utf8():
    with pytest.raises(DocumentParseError):
        parse_uploaded_file("bad.txt", "text/plain", b"\xff\xfe\xfa")


# ─── Office and PDF ───────────────────────────────────────────────


def test_parse_pdf():
    parsed = parse_uploaded_file("paper.pdf", MIME_PDF, _pdf_bytes("Hello PDF"))
    assert "Hello PDF" in parsed.content
    assert parsed.source == DocumentSource.UPLOAD_PDF
    assert parsed.metadata["page_count"] == 1


def test_parse_corrupt_pdf():
    with pytest.raises(DocumentParseError):
        parse_uploaded_file("broken.pdf", MIME_PDF, b"not a pdf at all")


def test_parse_docx_includes_tables():
    parsed = parse_uploaded_file("memo.docx", MIME_DOCX, _docx_bytes())
    assert parsed.content.splitlines() == ["First paragraph", "Region | North"]
    assert parsed.source == DocumentSource.UPLOAD_DOCX


def test_parse_pptx_blocks_per_slide():
    parsed = parse_uploaded_file("deck.pptx", None, _pptx_bytes())
    assert "--- Slide 1 ---\nWelcome slide" in parsed.content
    assert "--- Slide 2 ---\nClosing slide" in parsed.content
    assert parsed.metadata["slide_count"] == 2


# ─── Rejections ───────────────────────────────────────────────────


def test_unsupported_format():
    with pytest.raises(UnsupportedDocumentFormat):
        parse_uploaded_file("photo.png", "image/png", b"\x89PNG")


def test_too_large():
    with pytest.raises(DocumentTooLargeError) as exc_info:
        parse_uploaded_file("big.txt", MIME_TXT, b"a" * (MAX_FILE_SIZE + 1))
    assert "10MB limit" in exc_info.value.message
