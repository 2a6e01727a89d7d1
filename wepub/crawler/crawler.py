"""Recursive same-site crawler."""
from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from ..config import Settings, get_settings
from ..models.article import Article, CrawlBudget, CrawlFailure, CrawlReport, CrawlResult, CrawlSuccess
from ..models.crawl import SubLinkPolicy
from .errors import CrawlError
from .extractors import ArticleExtractor, ReadabilityExtractor
from .fetcher import Fetcher
from .limiter import ConcurrencyLimiter
from .links import LinkExtractor, normalize_url
from .retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class CrawlState:
    """Visited set shared by every branch of one crawl run."""

    visited: Set[str] = field(default_factory=set)
    "URLs claimed so far; a URL is claimed when its fetch starts"

    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def visited_count(self) -> int:
        return len(self.visited)

    async def claim(self, url: str, max_pages: int) -> bool:
        """Atomically mark ``url`` as visited if it is new and the page budget allows it."""
        async with self.lock:
            if url in self.visited:
                return False
            if max_pages > 0 and len(self.visited) >= max_pages:
                return False
            self.visited.add(url)
            return True

    def remaining(self, max_pages: int) -> Optional[int]:
        """Pages left in the budget, or None when unlimited."""
        if max_pages < 0:
            return None
        return max(0, max_pages - len(self.visited))


class Crawler:
    """Crawls a site from a root URL, following same-site sub-links.

    Each page goes through fetch, article extraction and link discovery.
    Children of a page are crawled through a :class:`ConcurrencyLimiter`
    at ``depth + 1``. A failing page is recorded and never stops its
    siblings.
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[ArticleExtractor] = None,
        retry_policy: Optional[RetryPolicy] = None,
        link_policy: SubLinkPolicy = SubLinkPolicy.PREFIX,
        settings: Optional[Settings] = None,
    ):
        """Initialize the crawler.

        Args:
            fetcher: Fetcher to use. If None, one is created from settings and
                closed with the crawler.
            extractor: Article extractor. Defaults to readability.
            retry_policy: Retry policy applied to every page.
            link_policy: Sub-link scoping policy used for the whole crawl.
            settings: Settings used for defaults.
        """
        self.settings = settings or get_settings()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(
            timeout=self.settings.fetch_timeout,
            user_agent=self.settings.user_agent,
        )
        self.extractor = extractor or ReadabilityExtractor()
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=self.settings.retry_attempts,
            initial_delay=self.settings.retry_delay,
        )
        self.link_extractor = LinkExtractor(link_policy)

    async def __aenter__(self) -> "Crawler":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._owns_fetcher:
            await self.fetcher.close()

    async def fetch_article(self, url: str) -> Article:
        """Fetch and extract one page, retrying transient failures.

        Raises:
            CrawlError: If the page cannot be turned into an article.
        """
        async def _attempt() -> Article:
            html = await self.fetcher.fetch(url)
            return self.extractor.extract(html, url)

        return await self.retry_policy.run(_attempt, label=url)

    async def parse_page(self, url: str) -> CrawlResult:
        """Fetch and extract one page, converting failures into a result."""
        try:
            article = await self.fetch_article(url)
        except CrawlError as e:
            logger.warning(f"[{url}] page failed: {e.error}")
            return CrawlFailure(url=url, error=e.error, error_detail=e.detail)
        except Exception as e:
            logger.error(f"[{url}] unexpected error while parsing page: {e}", exc_info=True)
            return CrawlFailure(
                url=url,
                error="Parse failed",
                error_detail="If the problem persists, check the URL or try again later.",
            )
        return CrawlSuccess(url=url, article=article)

    async def crawl(self, root_url: str, budget: Optional[CrawlBudget] = None) -> CrawlReport:
        """Crawl a site.

        Args:
            root_url: URL to start from; it also defines the crawl scope.
            budget: Depth, page and concurrency limits.

        Returns:
            Report with one entry per visited URL.
        """
        budget = budget or CrawlBudget()
        logger.info(
            f"Starting crawl of {root_url} "
            f"(max_depth={budget.max_depth}, max_pages={budget.max_pages}, "
            f"concurrency={budget.concurrency_limit}, policy={self.link_extractor.policy.value})"
        )

        state = CrawlState()
        limiter = ConcurrencyLimiter(self.settings.clamp_concurrency(budget.concurrency_limit))
        results = await self._crawl(root_url, root_url, 0, budget, state, limiter)

        report = CrawlReport(total_processed=state.visited_count)
        for result in results:
            if isinstance(result, CrawlSuccess):
                report.results.append(result)
            else:
                report.errors.append(result)

        logger.info(
            f"Finished crawl of {root_url}: {report.total_processed} processed, "
            f"{report.success_count} succeeded, {len(report.errors)} failed"
        )
        return report

    async def _crawl(
        self,
        url: str,
        root_url: str,
        depth: int,
        budget: CrawlBudget,
        state: CrawlState,
        limiter: ConcurrencyLimiter,
    ) -> List[CrawlResult]:
        if budget.max_pages == 0 or depth >= budget.max_depth:
            return []

        if not await state.claim(normalize_url(url), budget.max_pages):
            logger.debug(f"[{url}] skipped: already visited or page budget spent")
            return []

        logger.info(f"[{url}] crawling at depth {depth} ({state.visited_count} visited)")
        result = await self.parse_page(url)
        if not isinstance(result, CrawlSuccess):
            return [result]

        results: List[CrawlResult] = [result]

        remaining = state.remaining(budget.max_pages)
        if remaining == 0:
            logger.info(f"[{url}] page budget of {budget.max_pages} reached, not following links")
            return results
        if depth + 1 >= budget.max_depth:
            return results

        links = self.link_extractor.extract_links(result.article.content, root_url, base_url=url)
        candidates = sorted(link for link in links if link not in state.visited)
        if remaining is not None:
            candidates = candidates[:remaining]
        if not candidates:
            return results

        logger.info(f"[{url}] following {len(candidates)} sub-links at depth {depth + 1}")
        children = await limiter.run_bounded(
            functools.partial(self._crawl, link, root_url, depth + 1, budget, state, limiter)
            for link in candidates
        )
        for child_results in children:
            results.extend(child_results)
        return results
