"""Abstract base class for document metadata persistence.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# Only metadata rows live here.  Document text is stored separately in
# the blob store (IStorageProvider) under ``Document.content_key``.
# The concrete implementation is SQLiteDocumentProvider.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import Document, DocumentSource


class IDocumentProvider(ABC):
    """Contract for document metadata persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    async def insert_document(self, document: Document) -> Document:
        """Persist a new document row and return it."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document, or ``None`` if it does not exist."""

    @abstractmethod
    async def get_documents(self, document_ids: list[str]) -> list[Document]:
        """Return the documents that exist among *document_ids*, in input order."""

    @abstractmethod
    async def list_documents(
        self,
        *,
        created_by: str | None,
        source: DocumentSource | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Document], int]:
        """List documents newest-first.

        Parameters
        ----------
        created_by:
            Restrict to one owner; ``None`` lists every user's documents.
        source:
            Optional source filter.

        Returns
        -------
        tuple
            ``(page_items, total_matching)``.
        """

    @abstractmethod
    async def find_by_source_url(self, created_by: str, url: str) -> Document | None:
        """Return the owner's most recent document imported from *url*."""

    @abstractmethod
    async def find_orphaned_research(self) -> list[Document]:
        """Return research documents whose provider operation is still in
        progress although the document is ``processing`` or ``failed``.

        These are left behind when a worker dies mid-poll; the caller decides
        which of them still have a live job.
        """

    @abstractmethod
    async def update_document(self, document: Document) -> Document:
        """Overwrite the stored row with *document*; ``updated_at`` is refreshed."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete the row.  Returns ``False`` if it did not exist."""
