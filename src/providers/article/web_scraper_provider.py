"""Web scraper article provider using httpx and trafilatura.

Fetches a page with httpx and extracts its main readable text with
trafilatura, stripping navigation, ads and boilerplate.  An optional
ICacheProvider sits in front of the network so repeated imports of the
same URL (retries, several users) reuse the first extraction.
"""

from __future__ import annotations

import json

import httpx
import structlog
import trafilatura

from src.interfaces.article_provider import ArticleContent, IArticleProvider
from src.interfaces.cache_provider import ICacheProvider
from src.utils.errors import ScrapeError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 20.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; ContentStudio/0.1; document-import)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class WebScraperProvider(IArticleProvider):
    """Article extraction backed by httpx + trafilatura."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        cache: ICacheProvider | None = None,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(_DEFAULT_TIMEOUT),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )
        self._cache = cache

    async def extract_content(self, url: str) -> ArticleContent | None:
        """Fetch *url* and extract readable article text via trafilatura."""
        cache_key = f"article:{url}"
        if self._cache is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                return cached

        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ScrapeError(
                message=f"Timed out fetching {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ScrapeError(
                message=f"HTTP {exc.response.status_code} fetching {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ScrapeError(
                message=f"Failed to fetch {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        html = response.text
        text = trafilatura.extract(html, include_comments=False, include_tables=True)
        if not text:
            logger.warning("trafilatura_extraction_empty", url=url)
            return None

        title = ""
        author: str | None = None
        site_name: str | None = None
        metadata = trafilatura.extract(
            html,
            include_comments=False,
            output_format="json",
            with_metadata=True,
        )
        if metadata:
            try:
                meta_dict = json.loads(metadata)
                title = meta_dict.get("title") or ""
                author = meta_dict.get("author") or None
                site_name = meta_dict.get("sitename") or None
            except json.JSONDecodeError:
                logger.debug("metadata_parse_failed", url=url)

        article = ArticleContent(
            url=str(response.url),
            text=text,
            title=title,
            author=author,
            site_name=site_name,
        )
        logger.info("article_extracted", url=url, title=title, text_length=len(text))

        if self._cache is not None:
            await self._cache.set(cache_key, article)
        return article

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def get_provider_name(self) -> str:
        return "web_scraper"
