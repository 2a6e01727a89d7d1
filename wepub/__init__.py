"""WePub: crawl websites and feeds into articles and export them as books."""

__version__ = "0.1.0"
__license__ = "MIT"

# Import key components for easier access
from .crawler import Crawler, FeedCrawler, Fetcher
from .export import ExportError, ExportFactory
from .models import (
    Article,
    CrawlBudget,
    CrawlReport,
    ExportContent,
    ExportFormat,
    ExportJob,
    SubLinkPolicy,
)

__all__ = [
    "Crawler",
    "FeedCrawler",
    "Fetcher",
    "ExportError",
    "ExportFactory",
    "Article",
    "CrawlBudget",
    "CrawlReport",
    "ExportContent",
    "ExportFormat",
    "ExportJob",
    "SubLinkPolicy",
]
