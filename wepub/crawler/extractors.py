"""Article extraction from raw HTML."""
from __future__ import annotations

import html
import logging
from abc import ABC, abstractmethod
from typing import Optional

from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from ..models.article import Article
from .errors import EmptyContentError, NotAnArticleError

logger = logging.getLogger(__name__)

HTML_PARSER = "lxml"

_EXCERPT_MAX_CHARS = 300


class ArticleExtractor(ABC):
    """Base class for article extractors."""

    @abstractmethod
    def extract(self, html: str, source_url: str) -> Article:
        """Turn a page into an article.

        Args:
            html: Raw HTML of the page.
            source_url: URL the page was fetched from, used to resolve links.

        Returns:
            The extracted article.

        Raises:
            ExtractError: If the page does not contain a usable article.
        """


def _meta_content(soup: BeautifulSoup, *keys: str) -> Optional[str]:
    """Return the first non-empty ``<meta>`` value matching a name or property."""
    for key in keys:
        tag = soup.find("meta", attrs={"name": key}) or soup.find("meta", attrs={"property": key})
        if tag and tag.get("content", "").strip():
            return tag["content"].strip()
    return None


def _plain_text(soup: BeautifulSoup) -> str:
    return "\n".join(soup.stripped_strings)


class ReadabilityExtractor(ArticleExtractor):
    """Extractor backed by readability-lxml."""

    def __init__(self, min_text_length: int = 1):
        """Initialize the extractor.

        Args:
            min_text_length: Pages whose readable text is shorter than this
                are not considered articles.
        """
        self.min_text_length = min_text_length

    def extract(self, html: str, source_url: str) -> Article:
        try:
            document = Document(html, url=source_url)
            content = document.summary(html_partial=True)
            title = document.short_title()
        except Unparseable as e:
            logger.info(f"[{source_url}] readability could not parse the page: {e}")
            raise NotAnArticleError() from e

        if not content or not content.strip():
            raise EmptyContentError()

        summary = BeautifulSoup(content, HTML_PARSER)
        text_content = _plain_text(summary)
        if len(text_content) < self.min_text_length:
            logger.info(f"[{source_url}] no readable text found")
            raise NotAnArticleError()

        page = BeautifulSoup(html, HTML_PARSER)
        if not title and page.title and page.title.string:
            title = page.title.string.strip()

        excerpt = _meta_content(page, "description", "og:description")
        if not excerpt:
            first_paragraph = summary.find("p")
            if first_paragraph:
                excerpt = first_paragraph.get_text(" ", strip=True)[:_EXCERPT_MAX_CHARS] or None

        return Article(
            title=title or source_url,
            content=content.strip(),
            text_content=text_content,
            length=len(text_content),
            excerpt=excerpt,
            byline=_meta_content(page, "author", "article:author"),
            site_name=_meta_content(page, "og:site_name", "application-name"),
            published_time=_meta_content(page, "article:published_time", "date"),
        )


def article_from_summary(title: str, description: Optional[str], byline: Optional[str] = None) -> Article:
    """Build a degraded article from feed metadata.

    Used when an item's page cannot be fetched or parsed, so the item still
    yields one record.
    """
    description = (description or "").strip()
    if description:
        soup = BeautifulSoup(description, HTML_PARSER)
        text_content = _plain_text(soup)
        if soup.body is not None:
            content = "".join(str(child) for child in soup.body.children)
        else:
            content = f"<p>{html.escape(description)}</p>"
    else:
        text_content = title
        content = f"<p>{html.escape(title)}</p>"

    return Article(
        title=title,
        content=content,
        text_content=text_content,
        length=len(text_content),
        excerpt=text_content[:_EXCERPT_MAX_CHARS] or None,
        byline=byline,
    )
