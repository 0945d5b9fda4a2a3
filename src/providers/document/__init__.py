from src.providers.document.sqlite_document_provider import SQLiteDocumentProvider

__all__ = ["SQLiteDocumentProvider"]
