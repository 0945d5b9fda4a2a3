"""Uploaded file parsing: txt, pdf, docx and pptx to plain text.

PDF text comes from PyMuPDF (``fitz``), DOCX from python-docx (body
paragraphs, then table cells), and PPTX from python-pptx, one
``--- Slide N ---`` block per slide.  Every parser raises
:class:`DocumentParseError` on failure so the API can answer 422.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

import docx
import fitz  # PyMuPDF
import structlog
from pptx import Presentation

from src.models.document import DocumentSource
from src.utils.errors import DocumentParseError, DocumentTooLargeError, UnsupportedDocumentFormat

logger = structlog.get_logger(logger_name=__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024

MIME_TXT = "text/plain"
MIME_PDF = "application/pdf"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MIME_PPTX = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

SUPPORTED_MIME_TYPES: dict[str, DocumentSource] = {
    MIME_TXT: DocumentSource.UPLOAD_TXT,
    MIME_PDF: DocumentSource.UPLOAD_PDF,
    MIME_DOCX: DocumentSource.UPLOAD_DOCX,
    MIME_PPTX: DocumentSource.UPLOAD_PPTX,
}

EXTENSION_TO_MIME: dict[str, str] = {
    ".txt": MIME_TXT,
    ".pdf": MIME_PDF,
    ".docx": MIME_DOCX,
    ".pptx": MIME_PPTX,
}

_GENERIC_MIME_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


@dataclass(frozen=True)
class ParsedDocument:
    content: str
    title: str
    source: DocumentSource
    mime_type: str
    metadata: dict[str, Any] = field(default_factory=dict)


def resolve_mime_type(file_name: str, provided: str | None) -> str:
    """Return *provided* unless it is generic or unknown, else guess from the extension."""
    provided = (provided or "").split(";")[0].strip().lower()
    if provided in SUPPORTED_MIME_TYPES:
        return provided
    ext = PurePath(file_name).suffix.lower()
    if ext in EXTENSION_TO_MIME:
        return EXTENSION_TO_MIME[ext]
    return provided or "application/octet-stream"


def title_from_filename(file_name: str) -> str:
    stem = PurePath(file_name).stem if "." in file_name.lstrip(".") else file_name
    return " ".join(stem.replace("-", " ").replace("_", " ").split())


def count_words(text: str) -> int:
    return len(text.split())


def parse_uploaded_file(file_name: str, mime_type: str | None, data: bytes) -> ParsedDocument:
    """Validate and parse an uploaded file.

    Raises
    ------
    DocumentTooLargeError
        If *data* exceeds :data:`MAX_FILE_SIZE`.
    UnsupportedDocumentFormat
        If neither the MIME type nor the extension is supported.
    DocumentParseError
        If the file cannot be read.
    """
    if len(data) > MAX_FILE_SIZE:
        raise DocumentTooLargeError(
            message=(
                f'File "{file_name}" is {len(data) / 1024 / 1024:.2f}MB, '
                f"exceeds {MAX_FILE_SIZE // (1024 * 1024)}MB limit"
            )
        )

    resolved = resolve_mime_type(file_name, mime_type)
    source = SUPPORTED_MIME_TYPES.get(resolved)
    if source is None:
        raise UnsupportedDocumentFormat(
            message=f'File type "{resolved}" is not supported. Supported: TXT, PDF, DOCX, PPTX'
        )

    parser = _PARSERS[source]
    content, metadata = parser(data, file_name)
    logger.info("document_parsed", file_name=file_name, source=source.value, chars=len(content))
    return ParsedDocument(
        content=content,
        title=title_from_filename(file_name),
        source=source,
        mime_type=resolved,
        metadata=metadata,
    )


def _parse_txt(data: bytes, file_name: str) -> tuple[str, dict[str, Any]]:
    try:
        return data.decode("utf-8"), {}
    except UnicodeDecodeError as exc:
        raise DocumentParseError(message=f"Failed to parse text file {file_name}") from exc


def _parse_pdf(data: bytes, file_name: str) -> tuple[str, dict[str, Any]]:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as exc:  # noqa: BLE001
        raise DocumentParseError(message=f"Failed to parse PDF file {file_name}") from exc
    try:
        pages = [doc[i].get_text("text").strip() for i in range(len(doc))]
        page_count = len(doc)
    finally:
        doc.close()
    return "\n\n".join(p for p in pages if p), {"page_count": page_count}


def _parse_docx(data: bytes, file_name: str) -> tuple[str, dict[str, Any]]:
    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as exc:  # noqa: BLE001
        raise DocumentParseError(message=f"Failed to parse DOCX file {file_name}") from exc

    lines = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines), {}


def _parse_pptx(data: bytes, file_name: str) -> tuple[str, dict[str, Any]]:
    try:
        presentation = Presentation(io.BytesIO(data))
    except Exception as exc:  # noqa: BLE001
        raise DocumentParseError(message=f"Failed to parse PPTX file {file_name}") from exc

    blocks: list[str] = []
    for index, slide in enumerate(presentation.slides, start=1):
        texts = [
            shape.text_frame.text.strip()
            for shape in slide.shapes
            if shape.has_text_frame and shape.text_frame.text.strip()
        ]
        blocks.append(f"--- Slide {index} ---\n" + "\n".join(texts))
    return "\n\n".join(blocks), {"slide_count": len(blocks)}


_PARSERS = {
    DocumentSource.UPLOAD_TXT: _parse_txt,
    DocumentSource.UPLOAD_PDF: _parse_pdf,
    DocumentSource.UPLOAD_DOCX: _parse_docx,
    DocumentSource.UPLOAD_PPTX: _parse_pptx,
}
