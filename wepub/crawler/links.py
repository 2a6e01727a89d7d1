"""Same-site link discovery."""
from __future__ import annotations

import logging
from typing import List, Optional, Set, Union
from urllib.parse import urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup

from ..models.crawl import SubLinkPolicy
from .extractors import HTML_PARSER

logger = logging.getLogger(__name__)

LINK_SELECTOR = "a[href], area[href]"

SKIPPED_PREFIXES = ("#", "javascript:", "mailto:", "tel:")


def trim_trailing_slash(url: str) -> str:
    """Remove a single trailing slash."""
    return url[:-1] if url.endswith("/") else url


def normalize_url(url: str) -> str:
    """Normalize a URL by removing its query string, fragment and trailing slash."""
    parsed = urlparse(url)
    return trim_trailing_slash(urlunparse((
        parsed.scheme,
        parsed.netloc,
        parsed.path,
        "",  # params
        "",  # query
        "",  # fragment
    )))


def _path_segments(url: str) -> List[str]:
    return [segment for segment in urlparse(url).path.split("/") if segment]


def is_sub_link(
    root_url: str,
    candidate: str,
    policy: SubLinkPolicy = SubLinkPolicy.PREFIX,
) -> bool:
    """Check whether ``candidate`` lies within the crawl scope of ``root_url``.

    Both URLs must share a hostname and the candidate must not be the root
    itself. With :attr:`SubLinkPolicy.PREFIX` the candidate must start with
    the root followed by a path separator, so ``/blog`` covers ``/blog/post``
    but not ``/blog2``. With :attr:`SubLinkPolicy.FIRST_SEGMENT` only the
    root's first path segment has to match; a root without a path covers the
    whole host.
    """
    try:
        root = urlparse(root_url)
        test = urlparse(candidate)
    except ValueError:
        return False

    if not test.hostname or test.hostname != root.hostname:
        return False

    normalized_root = trim_trailing_slash(root_url)
    normalized_test = trim_trailing_slash(candidate)
    if normalized_test == normalized_root:
        return False

    if policy == SubLinkPolicy.FIRST_SEGMENT:
        root_segments = _path_segments(root_url)
        if not root_segments:
            return True
        test_segments = _path_segments(candidate)
        return bool(test_segments) and test_segments[0] == root_segments[0]

    return normalized_test.startswith(normalized_root + "/")


class LinkExtractor:
    """Collects sub-links of a root URL from a parsed page."""

    def __init__(self, policy: SubLinkPolicy = SubLinkPolicy.PREFIX):
        self.policy = SubLinkPolicy(policy)

    def extract_links(
        self,
        dom: Union[BeautifulSoup, str],
        root_url: str,
        base_url: Optional[str] = None,
    ) -> Set[str]:
        """Extract normalized sub-links of ``root_url``.

        Args:
            dom: Parsed page, or its HTML.
            root_url: URL defining the crawl scope.
            base_url: URL relative links are resolved against. Defaults to
                ``root_url``.

        Returns:
            Deduplicated absolute URLs that pass the sub-link policy.
        """
        if isinstance(dom, str):
            dom = BeautifulSoup(dom, HTML_PARSER)
        base_url = base_url or root_url
        scope = normalize_url(root_url)

        links: Set[str] = set()
        elements = dom.select(LINK_SELECTOR)
        logger.debug(f"[{base_url}] found {len(elements)} candidate links")

        for element in elements:
            href = (element.get("href") or "").strip()
            if not href or href.lower().startswith(SKIPPED_PREFIXES):
                continue

            try:
                absolute = urljoin(base_url, href)
            except ValueError:
                logger.debug(f"[{base_url}] invalid link: {href}")
                continue

            if urlparse(absolute).scheme not in ("http", "https"):
                continue

            normalized = normalize_url(absolute)
            if is_sub_link(scope, normalized, self.policy):
                links.add(normalized)
            else:
                logger.debug(f"[{base_url}] ignoring out-of-scope link: {normalized}")

        logger.debug(f"[{base_url}] {len(links)} sub-links in scope of {scope}")
        return links
