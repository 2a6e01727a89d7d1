"""Pytest configuration and fixtures for WePub tests."""
import logging
import sys
from pathlib import Path
from typing import AsyncGenerator, Dict, List, Optional, Union

import pytest
import pytest_asyncio
from aiohttp import ClientSession

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from wepub.config import Settings
from wepub.crawler.errors import BadStatusError, CrawlError, NotAnArticleError
from wepub.crawler.retry import RetryPolicy
from wepub.models.article import Article
from wepub.models.export import ExportContent

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

# Reduce log noise for test output
logging.getLogger("aiohttp").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)


def article_page(title: str, body: str = "", links: Optional[List[str]] = None) -> str:
    """Build an article-like HTML page that readability can extract."""
    anchors = "".join(f'<p>Read more in <a href="{href}">{href}</a> for details.</p>' for href in links or [])
    paragraph = (
        f"<p>{title} is a long enough paragraph about an interesting topic. "
        "It has several sentences, commas, and enough words for extraction to "
        "consider it real content, which is what we want in these tests.</p>"
    )
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  <meta name="description" content="About {title}">
  <meta name="author" content="Jane Doe">
</head>
<body>
  <nav><a href="/">Home</a></nav>
  <article>
    <h1>{title}</h1>
    {paragraph * 3}
    {body}
    {anchors}
  </article>
</body>
</html>"""


class FakeFetcher:
    """Serves pages from a dict and records every requested URL."""

    def __init__(self, pages: Dict[str, str], failures: Optional[Dict[str, CrawlError]] = None):
        self.pages = pages
        self.failures = failures or {}
        self.calls: List[str] = []

    async def fetch(self, url: str, timeout: Optional[float] = None) -> str:
        self.calls.append(url)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.pages:
            raise BadStatusError(404, "Not Found")
        return self.pages[url]

    async def fetch_feed(self, url: str, timeout: Optional[float] = None) -> Union[str, bytes]:
        return await self.fetch(url, timeout)

    async def close(self) -> None:
        pass


@pytest.fixture
def settings() -> Settings:
    """Settings with no retry delay."""
    return Settings(retry_delay=0.0, retry_attempts=2)


@pytest.fixture
def no_wait_retry() -> RetryPolicy:
    """Retry policy that never sleeps."""
    async def _sleep(delay: float) -> None:
        return None

    return RetryPolicy(max_attempts=2, initial_delay=1.0, sleep=_sleep)


@pytest.fixture
def export_contents() -> List[ExportContent]:
    """Three small articles to export."""
    return [
        ExportContent(
            url=f"https://example.com/blog/post-{i}",
            title=f"Post {i}",
            content=f"<p>Body of post {i} with <strong>markup</strong>.</p>",
        )
        for i in range(1, 4)
    ]


@pytest_asyncio.fixture
async def http_session() -> AsyncGenerator[ClientSession, None]:
    """Create an aiohttp client session for testing."""
    async with ClientSession() as session:
        yield session


@pytest.fixture
def mock_aioresponse():
    """Create a mock aiohttp response using aioresponses."""
    from aioresponses import aioresponses

    with aioresponses() as m:
        yield m


class PassthroughExtractor:
    """Uses the whole page as the article body; a page containing NOT-AN-ARTICLE is rejected."""

    def extract(self, html: str, source_url: str) -> Article:
        if "NOT-AN-ARTICLE" in html:
            raise NotAnArticleError()
        return Article(title=source_url, content=html, text_content=html, length=len(html))


@pytest.fixture
def make_page():
    """Factory for article-like HTML pages."""
    return article_page


@pytest.fixture
def fetcher_factory():
    """Factory for :class:`FakeFetcher` instances."""
    return FakeFetcher


@pytest.fixture
def passthrough_extractor() -> PassthroughExtractor:
    return PassthroughExtractor()
