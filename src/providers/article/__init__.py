"""Article extraction providers.

WebScraperProvider implements IArticleProvider with httpx + trafilatura and
backs URL document imports.  It accepts an optional ICacheProvider so the
same page is only fetched once per cache TTL.
"""

from src.providers.article.web_scraper_provider import WebScraperProvider

__all__ = ["WebScraperProvider"]
