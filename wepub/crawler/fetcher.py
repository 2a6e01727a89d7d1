"""HTTP fetching for WePub."""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Tuple, Union

import aiohttp

from ..config import DEFAULT_USER_AGENT
from .errors import (
    BadStatusError,
    EmptyBodyError,
    FetchTimeoutError,
    NetworkError,
    UnsupportedContentTypeError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 8.0

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
FEED_ACCEPT = "application/rss+xml,application/xml,application/atom+xml,text/xml,*/*"

HTML_CONTENT_TYPES: Tuple[str, ...] = ("text/html",)
FEED_CONTENT_TYPES: Tuple[str, ...] = ("xml", "rss", "atom")


class Fetcher:
    """Issues single, time-bounded GET requests.

    Retries are not handled here; wrap calls in a
    :class:`~wepub.crawler.retry.RetryPolicy` instead.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """Initialize the fetcher.

        Args:
            session: Optional aiohttp ClientSession to reuse. It is not closed
                by the fetcher.
            timeout: Default timeout in seconds for each request.
            user_agent: User-Agent header value.
        """
        self.session = session
        self._external_session = session is not None
        self.timeout = timeout
        self.user_agent = user_agent

    async def __aenter__(self) -> "Fetcher":
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create an aiohttp session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._external_session = False
        return self.session

    async def close(self) -> None:
        """Close the HTTP session if it was created by this instance."""
        if self._external_session:
            return
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    def _headers(self, accept: str) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": accept,
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def fetch(self, url: str, timeout: Optional[float] = None) -> str:
        """Fetch an HTML page.

        Args:
            url: Absolute URL to fetch.
            timeout: Override for the default timeout, in seconds.

        Returns:
            The response body.

        Raises:
            FetchError: One of its subclasses describing the failure.
        """
        return await self._get(url, HTML_ACCEPT, HTML_CONTENT_TYPES, timeout)

    async def fetch_feed(self, url: str, timeout: Optional[float] = None) -> bytes:
        """Fetch an RSS or Atom document.

        The raw bytes are returned so the XML declaration decides the encoding.
        """
        return await self._get(url, FEED_ACCEPT, FEED_CONTENT_TYPES, timeout, raw=True)

    async def _get(
        self,
        url: str,
        accept: str,
        allowed_types: Tuple[str, ...],
        timeout: Optional[float],
        raw: bool = False,
    ) -> Union[str, bytes]:
        session = self._get_session()
        client_timeout = aiohttp.ClientTimeout(total=timeout or self.timeout)
        logger.debug(f"Fetching {url}")

        try:
            async with session.get(
                url, headers=self._headers(accept), timeout=client_timeout
            ) as response:
                if not 200 <= response.status < 300:
                    raise BadStatusError(response.status, response.reason or "")

                content_type = response.headers.get("Content-Type", "")
                if not any(t in content_type.lower() for t in allowed_types):
                    raise UnsupportedContentTypeError(content_type or None)

                if raw:
                    body = await response.read()
                else:
                    body = await response.text(errors="replace")
        except asyncio.TimeoutError as e:
            logger.warning(f"Timed out fetching {url}")
            raise FetchTimeoutError() from e
        except (aiohttp.ClientError, OSError) as e:
            logger.warning(f"Network error fetching {url}: {e}")
            raise NetworkError(str(e) or type(e).__name__) from e

        if not body or not body.strip():
            raise EmptyBodyError()

        return body
