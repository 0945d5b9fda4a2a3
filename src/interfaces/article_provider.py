"""Abstract base class for web page content extraction.

Used by URL document ingestion: given a public URL, return the page's main
readable text and whatever title metadata is available.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ArticleContent:
    """Extracted content from a web page.

    Attributes
    ----------
    url:
        The URL the content was extracted from (after redirects).
    text:
        The main body text with markup stripped.
    title:
        The page title, or an empty string when none could be found.
    author:
        The author if identifiable.
    site_name:
        The publishing site's name if declared in page metadata.
    """

    url: str
    text: str
    title: str = ""
    author: str | None = None
    site_name: str | None = None


# Concrete implementation: WebScraperProvider (src/providers/article/)
class IArticleProvider(ABC):
    """Contract for services that extract readable content from web URLs."""

    @abstractmethod
    async def extract_content(self, url: str) -> ArticleContent | None:
        """Fetch *url* and extract its readable content.

        Returns
        -------
        ArticleContent or None
            ``None`` when the page was fetched but held no usable text.

        Raises
        ------
        src.utils.errors.ScrapeError
            If the HTTP request fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this provider."""
