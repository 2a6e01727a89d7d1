"""RSS and Atom feeds as an alternative crawl entry point.

Feeds are parsed with ElementTree. RSS 2.0 (``rss/channel/item``), Atom
(``feed/entry``) and RSS 1.0 (``rdf:RDF/item``) documents are supported.
Every item link is fetched and extracted on its own; links found inside the
articles are not followed.
"""
from __future__ import annotations

import codecs
import functools
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from ..models.article import Article, CrawlFailure, CrawlReport, CrawlSuccess
from .crawler import Crawler
from .errors import CrawlError, FeedError
from .extractors import article_from_summary
from .limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)

# XML namespaces used by feeds
FEED_NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "dc": "http://purl.org/dc/elements/1.1/",
    "content": "http://purl.org/rss/1.0/modules/content/",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "rss1": "http://purl.org/rss/1.0/",
}


_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
_DECLARED_ENCODING = re.compile(r"""encoding\s*=\s*["']([A-Za-z0-9._\-]+)["']""")


def decode_feed(document: Union[str, bytes]) -> str:
    """Decode a feed document and drop its XML declaration.

    Bytes are decoded with the BOM or the encoding named in the declaration,
    falling back to UTF-8. The declaration is removed afterwards because
    expat would otherwise re-apply it to already decoded text, and it does
    not support multi-byte encodings such as GBK.
    """
    if isinstance(document, bytes):
        if document.startswith(codecs.BOM_UTF8):
            encoding = "utf-8-sig"
        elif document.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
            encoding = "utf-16"
        else:
            encoding = "utf-8"
            declaration = _XML_DECLARATION.match(document[:256].decode("ascii", errors="replace"))
            if declaration:
                match = _DECLARED_ENCODING.search(declaration.group(0))
                if match:
                    encoding = match.group(1)
        try:
            text = document.decode(encoding, errors="replace")
        except LookupError:
            logger.warning(f"Unknown feed encoding {encoding!r}, decoding as UTF-8")
            text = document.decode("utf-8", errors="replace")
    else:
        text = document

    return _XML_DECLARATION.sub("", text.lstrip("\ufeff"), count=1).strip()


def _text(element: ET.Element, path: str) -> Optional[str]:
    found = element.find(path, FEED_NS)
    if found is None or found.text is None:
        return None
    return found.text.strip() or None


@dataclass
class FeedItem:
    """Represents an entry of a feed."""

    title: str
    """Title of the entry."""

    link: str
    """URL of the entry's page."""

    description: Optional[str] = None
    """Summary or content as published in the feed."""

    pub_date: Optional[str] = None
    """Publication date as found in the feed."""

    author: Optional[str] = None
    """Author name."""

    @classmethod
    def from_rss_element(cls, element: ET.Element, ns_prefix: str = "") -> Optional[FeedItem]:
        """Create a FeedItem from an RSS ``<item>``.

        Args:
            element: The item element.
            ns_prefix: ``"rss1:"`` for RSS 1.0 documents.

        Returns:
            FeedItem if the item has a title and a link, None otherwise.
        """
        title = _text(element, f"{ns_prefix}title")
        link = _text(element, f"{ns_prefix}link")
        if not title or not link:
            return None

        return cls(
            title=title,
            link=link,
            description=_text(element, f"{ns_prefix}description") or _text(element, "content:encoded"),
            pub_date=_text(element, "pubDate") or _text(element, "published") or _text(element, "dc:date"),
            author=_text(element, "author") or _text(element, "dc:creator"),
        )

    @classmethod
    def from_atom_element(cls, element: ET.Element) -> Optional[FeedItem]:
        """Create a FeedItem from an Atom ``<entry>``."""
        title = _text(element, "atom:title")
        link = None
        for link_elem in element.findall("atom:link", FEED_NS):
            href = (link_elem.get("href") or "").strip()
            if not href:
                continue
            if link_elem.get("rel", "alternate") == "alternate":
                link = href
                break
            link = link or href
        if not title or not link:
            return None

        return cls(
            title=title,
            link=link,
            description=_text(element, "atom:summary") or _text(element, "atom:content"),
            pub_date=_text(element, "atom:published") or _text(element, "atom:updated"),
            author=_text(element, "atom:author/atom:name"),
        )

    def to_article(self) -> Article:
        """Degraded article built from the feed's own fields."""
        return article_from_summary(self.title, self.description, byline=self.author)


@dataclass
class Feed:
    """A parsed feed."""

    title: Optional[str] = None
    description: Optional[str] = None
    items: List[FeedItem] = field(default_factory=list)


class FeedParser:
    """Parses RSS and Atom documents into :class:`Feed` objects."""

    def parse(self, xml: Union[str, bytes]) -> Feed:
        """Parse a feed document.

        Items without a title or link are dropped.

        Raises:
            FeedError: If the document is not well-formed or not a feed.
        """
        try:
            root = ET.fromstring(decode_feed(xml))
        except (ET.ParseError, ValueError) as e:
            raise FeedError("Invalid feed", detail=f"The document is not valid XML: {e}") from e

        if root.tag == "rss":
            channel = root.find("channel")
            if channel is None:
                raise FeedError("Invalid feed", detail="RSS document has no channel")
            items = [FeedItem.from_rss_element(item) for item in channel.findall("item")]
            return Feed(
                title=_text(channel, "title"),
                description=_text(channel, "description"),
                items=[item for item in items if item],
            )

        if root.tag == f"{{{FEED_NS['atom']}}}feed":
            items = [FeedItem.from_atom_element(entry) for entry in root.findall("atom:entry", FEED_NS)]
            return Feed(
                title=_text(root, "atom:title"),
                description=_text(root, "atom:subtitle"),
                items=[item for item in items if item],
            )

        if root.tag == f"{{{FEED_NS['rdf']}}}RDF":
            channel = root.find("rss1:channel", FEED_NS)
            items = [
                FeedItem.from_rss_element(item, ns_prefix="rss1:")
                for item in root.findall("rss1:item", FEED_NS)
            ]
            return Feed(
                title=_text(channel, "rss1:title") if channel is not None else None,
                description=_text(channel, "rss1:description") if channel is not None else None,
                items=[item for item in items if item],
            )

        raise FeedError("Invalid feed", detail=f"Unsupported feed root element: {root.tag}")


class FeedCrawler:
    """Turns every item of a feed into exactly one article record."""

    def __init__(
        self,
        crawler: Crawler,
        parser: Optional[FeedParser] = None,
        concurrency_limit: int = 1,
    ):
        """Initialize the feed crawler.

        Args:
            crawler: Crawler providing fetch, extraction and retries.
            parser: Feed parser.
            concurrency_limit: Maximum number of items fetched at once.
        """
        self.crawler = crawler
        self.parser = parser or FeedParser()
        self.limiter = ConcurrencyLimiter(concurrency_limit)

    async def load_feed(self, url: str) -> Feed:
        """Fetch and parse a feed.

        Raises:
            FetchError: If the feed cannot be downloaded.
            FeedError: If the document is not a feed.
        """
        fetcher = self.crawler.fetcher
        xml = await self.crawler.retry_policy.run(lambda: fetcher.fetch_feed(url), label=url)
        feed = self.parser.parse(xml)
        logger.info(f"[{url}] feed '{feed.title}' has {len(feed.items)} items")
        return feed

    async def crawl(
        self,
        url: str,
        max_pages: Optional[int] = None,
        parse_content: bool = True,
    ) -> Tuple[Feed, CrawlReport]:
        """Fetch a feed and extract an article for every item.

        Args:
            url: Feed URL.
            max_pages: Only the first ``max_pages`` items are used when positive.
            parse_content: When False, items are not fetched and the feed's
                description is used as the article body.

        Returns:
            The feed and a report whose results hold one record per item, in
            feed order. Items that fell back to the feed description are also
            listed in ``errors``.
        """
        feed = await self.load_feed(url)
        items = feed.items
        if max_pages is not None and max_pages >= 0:
            items = items[:max_pages]

        records = await self.limiter.run_bounded(
            functools.partial(self._process_item, index, item, parse_content)
            for index, item in enumerate(items)
        )
        records.sort(key=lambda record: record[0])

        report = CrawlReport(total_processed=len(items))
        for _, success, failure in records:
            report.results.append(success)
            if failure is not None:
                report.errors.append(failure)
        return feed, report

    async def _process_item(
        self, index: int, item: FeedItem, parse_content: bool
    ) -> Tuple[int, CrawlSuccess, Optional[CrawlFailure]]:
        if not parse_content:
            return index, CrawlSuccess(url=item.link, article=item.to_article()), None

        try:
            article = await self.crawler.fetch_article(item.link)
        except CrawlError as e:
            logger.warning(f"[{item.link}] falling back to feed description: {e.error}")
            failure = CrawlFailure(url=item.link, error=e.error, error_detail=e.detail)
            return index, CrawlSuccess(url=item.link, article=item.to_article()), failure
        except Exception as e:
            logger.error(f"[{item.link}] unexpected error, falling back to feed description: {e}", exc_info=True)
            failure = CrawlFailure(url=item.link, error="Parse failed", error_detail=str(e))
            return index, CrawlSuccess(url=item.link, article=item.to_article()), failure
        return index, CrawlSuccess(url=item.link, article=article), None
