"""Web crawling and article extraction for WePub."""

from .crawler import Crawler, CrawlState
from .errors import (
    BadStatusError,
    CrawlError,
    EmptyBodyError,
    EmptyContentError,
    ExtractError,
    FeedError,
    FetchError,
    FetchTimeoutError,
    NetworkError,
    NotAnArticleError,
    UnsupportedContentTypeError,
)
from .extractors import ArticleExtractor, ReadabilityExtractor
from .feed import Feed, FeedCrawler, FeedItem, FeedParser
from .fetcher import Fetcher
from .limiter import ConcurrencyLimiter
from .links import LinkExtractor, is_sub_link, normalize_url
from .retry import RetryPolicy, retry

__all__ = [
    "Crawler",
    "CrawlState",
    "CrawlError",
    "FetchError",
    "FetchTimeoutError",
    "BadStatusError",
    "UnsupportedContentTypeError",
    "EmptyBodyError",
    "NetworkError",
    "ExtractError",
    "NotAnArticleError",
    "EmptyContentError",
    "FeedError",
    "ArticleExtractor",
    "ReadabilityExtractor",
    "Feed",
    "FeedCrawler",
    "FeedItem",
    "FeedParser",
    "Fetcher",
    "ConcurrencyLimiter",
    "LinkExtractor",
    "is_sub_link",
    "normalize_url",
    "RetryPolicy",
    "retry",
]
