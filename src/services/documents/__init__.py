"""Document ingestion helpers.

- **parsers** -- uploaded txt/pdf/docx/pptx bytes to plain text, with
  size and MIME-type checks.
- **url_validator** -- rejects URLs the scraper must not fetch.
"""

from src.services.documents.parsers import ParsedDocument, count_words, parse_uploaded_file
from src.services.documents.url_validator import normalize_url, validate_url

__all__ = [
    "ParsedDocument",
    "count_words",
    "normalize_url",
    "parse_uploaded_file",
    "validate_url",
]
