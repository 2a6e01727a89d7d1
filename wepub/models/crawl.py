"""Request and response models for the crawl and feed endpoints."""
from enum import Enum
from typing import List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .article import MAX_CONCURRENCY_LIMIT, CrawlBudget, CrawlFailure, CrawlSuccess


class SubLinkPolicy(str, Enum):
    """How a discovered link is scoped against the crawl root."""

    PREFIX = "prefix"
    "Candidate must start with the full root URL"

    FIRST_SEGMENT = "first_segment"
    "Candidate must share the root's first path segment"


def validate_http_url(value: str) -> str:
    """Reject anything that is not an absolute http(s) URL."""
    value = (value or "").strip()
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL: {value!r}")
    return value


class CrawlRequest(BaseModel):
    """Request to crawl a site starting from a root URL."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "url": "https://example.com/blog",
                "maxPages": 10,
                "maxDepth": 3,
                "concurrencyLimit": 1,
                "linkPolicy": "prefix",
            }
        },
    )

    url: str = Field(..., description="Root URL to start crawling from")
    max_pages: int = Field(10, alias="maxPages", description="Page budget, -1 for unlimited", ge=-1)
    max_depth: int = Field(3, alias="maxDepth", description="Depth budget", ge=0)
    concurrency_limit: int = Field(1, alias="concurrencyLimit", description="Clamped to [1, 8]")
    link_policy: SubLinkPolicy = Field(
        SubLinkPolicy.PREFIX, alias="linkPolicy", description="Sub-link scoping policy"
    )

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        return validate_http_url(v)

    def to_budget(self) -> CrawlBudget:
        return CrawlBudget(
            max_depth=self.max_depth,
            max_pages=self.max_pages,
            concurrency_limit=self.concurrency_limit,
        )


class CrawlResponse(BaseModel):
    """Successful (possibly partial) crawl response."""

    model_config = ConfigDict(populate_by_name=True)

    results: List[CrawlSuccess] = Field(default_factory=list)
    total_processed: int = Field(0, alias="totalProcessed")
    success_count: int = Field(0, alias="successCount")
    errors: List[CrawlFailure] = Field(default_factory=list)


class FeedRequest(BaseModel):
    """Request to turn an RSS or Atom feed into articles."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., description="Feed URL")
    max_pages: Optional[int] = Field(
        None, alias="maxPages", description="Maximum number of feed items to process"
    )
    parse_content: bool = Field(
        True,
        alias="parseContent",
        description="Fetch each item's page; otherwise use the feed description",
    )
    concurrency_limit: int = Field(
        1,
        alias="concurrencyLimit",
        description="Number of feed items fetched at once, clamped to [1, 8]",
    )

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        return validate_http_url(v)

    @field_validator("concurrency_limit")
    @classmethod
    def clamp_concurrency(cls, v: int) -> int:
        return max(1, min(MAX_CONCURRENCY_LIMIT, v))


class FeedInfo(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


class FeedResponse(CrawlResponse):
    """Feed crawl response; mirrors the crawl response with feed metadata."""

    feed: FeedInfo = Field(default_factory=FeedInfo)


class ParseRequest(BaseModel):
    """Request to extract a single article."""

    url: str

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        return validate_http_url(v)


class ErrorResponse(BaseModel):
    """Error envelope shared by every endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    error_detail: Optional[str] = Field(None, alias="errorDetail")
    errors: Optional[List[CrawlFailure]] = None
