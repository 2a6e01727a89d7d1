"""Article and crawl result models for WePub."""
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_CONCURRENCY_LIMIT = 8


class Article(BaseModel):
    """Readable article extracted from an HTML page."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(..., description="Article title")
    content: str = Field(..., description="Article body as HTML")
    text_content: str = Field("", alias="textContent", description="Article body as plain text")
    length: int = Field(0, description="Character count of the plain text body")
    excerpt: Optional[str] = Field(None, description="Short summary of the article")
    byline: Optional[str] = Field(None, description="Author line")
    site_name: Optional[str] = Field(None, alias="siteName", description="Name of the publishing site")
    published_time: Optional[str] = Field(
        None, alias="publishedTime", description="Publication timestamp as found on the page"
    )


class CrawlSuccess(BaseModel):
    """A URL that was fetched and parsed into an article."""

    url: str
    success: Literal[True] = True
    article: Article


class CrawlFailure(BaseModel):
    """A URL that could not be turned into an article."""

    model_config = ConfigDict(populate_by_name=True)

    url: str
    success: Literal[False] = False
    error: str = Field(..., description="Short error class")
    error_detail: Optional[str] = Field(
        None, alias="errorDetail", description="Human readable detail or remediation hint"
    )


CrawlResult = Union[CrawlSuccess, CrawlFailure]


class CrawlBudget(BaseModel):
    """Limits for a single crawl run."""

    max_depth: int = Field(3, description="Maximum link depth, the root is depth 0", ge=0)
    max_pages: int = Field(
        10,
        description="Maximum number of pages to visit, -1 for unlimited and 0 for none",
        ge=-1,
    )
    concurrency_limit: int = Field(1, description="Maximum number of concurrent child crawls")

    @field_validator("concurrency_limit")
    @classmethod
    def clamp_concurrency(cls, v: int) -> int:
        """Clamp out of range limits instead of rejecting them."""
        return max(1, min(MAX_CONCURRENCY_LIMIT, v))

    @property
    def unlimited_pages(self) -> bool:
        return self.max_pages < 0


class CrawlReport(BaseModel):
    """Aggregated outcome of a crawl run."""

    results: List[CrawlSuccess] = Field(default_factory=list)
    errors: List[CrawlFailure] = Field(default_factory=list)
    total_processed: int = Field(0, description="Number of distinct URLs visited")

    @property
    def success_count(self) -> int:
        return len(self.results)

    @property
    def urls(self) -> List[str]:
        """Every visited URL, successes first."""
        return [r.url for r in self.results] + [e.url for e in self.errors]
