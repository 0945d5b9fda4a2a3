"""Document domain models: uploaded, scraped, or researched text sources.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph, no imports from upper layers).
#
# A document is a metadata row plus a text blob in storage.  The row holds
# ``content_key`` (the storage key of the extracted text), never the text
# itself.  URL and research documents are created in ``processing`` state
# and filled in by background jobs; everything else is ``ready`` on insert.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentSource(str, Enum):
    """How the document's text entered the system."""

    MANUAL = "manual"
    UPLOAD_TXT = "upload_txt"
    UPLOAD_PDF = "upload_pdf"
    UPLOAD_DOCX = "upload_docx"
    UPLOAD_PPTX = "upload_pptx"
    URL = "url"
    RESEARCH = "research"


class DocumentStatus(str, Enum):
    READY = "ready"
    PROCESSING = "processing"
    FAILED = "failed"


class ResearchSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    url: str


class ResearchConfig(BaseModel):
    """Progress of a deep-research operation backing a research document.

    ``operation_id`` is persisted as soon as the provider accepts the query
    so a restarted worker can resume polling instead of starting over.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    operation_id: str | None = None
    research_status: str | None = None  # in_progress | completed | failed
    source_count: int | None = None
    sources: list[ResearchSource] = Field(default_factory=list)


class Document(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    content_key: str
    mime_type: str = "text/plain"
    word_count: int = 0
    source: DocumentSource = DocumentSource.MANUAL
    original_file_name: str | None = None
    original_file_size: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    status: DocumentStatus = DocumentStatus.READY
    error_message: str | None = None
    source_url: str | None = None
    research_config: ResearchConfig | None = None
    content_hash: str | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class DocumentPage(BaseModel):
    """One page of a paginated document listing."""

    model_config = ConfigDict(frozen=True)

    items: list[Document]
    total: int
    has_more: bool
