"""Error types raised while fetching, extracting and parsing feeds.

Every error carries a short ``error`` label and an optional ``detail`` hint so
it can be turned into a :class:`~wepub.models.CrawlFailure` without exposing a
traceback. ``transient`` tells the retry policy whether another attempt could
succeed.
"""
from typing import Optional


class CrawlError(Exception):
    """Base class for per-URL crawl failures."""

    error: str = "Parse failed"
    detail: Optional[str] = None
    transient: bool = False

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(message or self.error)
        if message:
            self.error = message
        if detail is not None:
            self.detail = detail


class FetchError(CrawlError):
    """Base class for fetch failures."""

    error = "Fetch failed"


class FetchTimeoutError(FetchError):
    error = "Request timed out"
    detail = (
        "The network connection may be unstable, the server may be slow "
        "to respond, or the site may be unreachable."
    )
    transient = True


class BadStatusError(FetchError):
    """The server answered with a non-2xx status."""

    detail = (
        "The site may be offline, may block crawlers, or may require "
        "authentication."
    )

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        super().__init__(f"HTTP request failed: {status} {reason}".rstrip())
        # Rate limits and server errors are worth another attempt.
        self.transient = status in (408, 429) or status >= 500


class UnsupportedContentTypeError(FetchError):
    detail = "The URL is not an HTML page; it may be a PDF, an image or another binary file."

    def __init__(self, content_type: Optional[str]):
        self.content_type = content_type
        super().__init__(f"Unsupported content type: {content_type or 'unknown'}")


class EmptyBodyError(FetchError):
    error = "Empty page"
    detail = (
        "The site returned a blank page, may need JavaScript to render its "
        "content, or may use anti-crawling measures."
    )


class NetworkError(FetchError):
    error = "Network error"
    transient = True

    def __init__(self, detail: str):
        super().__init__(self.error, detail=detail)


class ExtractError(CrawlError):
    """Base class for article extraction failures."""

    error = "Could not extract article"


class NotAnArticleError(ExtractError):
    error = "Could not parse article content"
    detail = (
        "The page may not be structured as an article, may require login, "
        "or may be a listing or home page."
    )


class EmptyContentError(ExtractError):
    error = "Extracted content is empty"
    detail = (
        "The article may be loaded dynamically, may need a subscription, or "
        "the site may use content protection."
    )


class FeedError(CrawlError):
    """The feed document could not be read."""

    error = "Invalid feed"
