"""Pydantic models for WePub."""

from .article import (
    Article,
    CrawlBudget,
    CrawlFailure,
    CrawlReport,
    CrawlResult,
    CrawlSuccess,
)
from .crawl import (
    CrawlRequest,
    CrawlResponse,
    ErrorResponse,
    FeedInfo,
    FeedRequest,
    FeedResponse,
    ParseRequest,
    SubLinkPolicy,
)
from .export import ExportContent, ExportFormat, ExportJob, ExportRequest

__all__ = [
    "Article",
    "CrawlBudget",
    "CrawlFailure",
    "CrawlReport",
    "CrawlResult",
    "CrawlSuccess",
    "CrawlRequest",
    "CrawlResponse",
    "ErrorResponse",
    "FeedInfo",
    "FeedRequest",
    "FeedResponse",
    "ParseRequest",
    "SubLinkPolicy",
    "ExportContent",
    "ExportFormat",
    "ExportJob",
    "ExportRequest",
]
