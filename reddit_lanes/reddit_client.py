"""Read-only client for the Reddit JSON listing and search endpoints."""

import asyncio
import logging
from contextlib import nullcontext
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from reddit_lanes.config import ProviderConfig
from reddit_lanes.errors import NetworkError, NotFoundError, SearchError
from reddit_lanes.models.item import Page, SearchResult
from reddit_lanes.models.lane import SortMode
from reddit_lanes.models.mapping import MalformedPayloadError, listing_to_page, search_to_results

logger = logging.getLogger(__name__)

# Statuses that mean the remote service is unavailable or throttling us,
# rather than the topic being missing.
_TRANSIENT_STATUSES = {429, 500, 502, 503, 504}


class ContentProviderClient:
    """
    Stateless wrapper over the remote read API.

    Translates raw listing and search responses into normalized Page and
    SearchResult objects. Performs no retries; every failure surfaces as a
    NetworkError, NotFoundError or SearchError.
    """

    def __init__(
        self,
        config: Optional[ProviderConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the client.

        Args:
            config: Provider configuration (defaults to public reddit.com)
            session: Optional externally-owned HTTP session
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.config = config or ProviderConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.prometheus_exporter = prometheus_exporter
        self._session = session
        self._owns_session = session is None

    async def initialize(self) -> aiohttp.ClientSession:
        """
        Create the HTTP session if one was not supplied.

        Returns:
            The session used for requests
        """
        if self._session is None:
            logger.info(f"Initializing provider client for {self.base_url}")
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.config.user_agent},
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_sec),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            logger.info("Closing provider client")
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "ContentProviderClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _timer(self, endpoint: str):
        if self.prometheus_exporter:
            return self.prometheus_exporter.time_request(endpoint)
        return nullcontext()

    async def _get_json(self, url: str, params: Dict[str, Any], endpoint: str):
        """
        Issue a GET request and decode the JSON body.

        Returns:
            Tuple of (status, decoded body or None when the status is not 200)

        Raises:
            NetworkError: On transport failure or an undecodable body
        """
        session = await self.initialize()
        try:
            with self._timer(endpoint):
                async with session.get(url, params=params, allow_redirects=False) as response:
                    if response.status != 200:
                        return response.status, None
                    return response.status, await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Request to {url} timed out") from e
        except aiohttp.ContentTypeError as e:
            raise NetworkError(f"Undecodable response from {url}: {e}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {url}: {e}") from e

    async def fetch_page(
        self,
        topic: str,
        sort: SortMode = SortMode.HOT,
        page_size: int = 25,
        continuation_token: Optional[str] = None,
        include_thumbnails: bool = True,
        include_awards: bool = True,
    ) -> Page:
        """
        Fetch one page of submissions for a subreddit.

        Args:
            topic: Subreddit name (case-sensitive, without the r/ prefix)
            sort: Listing sort order
            page_size: Number of submissions to request (must be positive)
            continuation_token: Token from the previous page; empty or None for the first page
            include_thumbnails: Keep thumbnail URLs on the returned items
            include_awards: Keep award counts on the returned items

        Returns:
            The normalized page

        Raises:
            NotFoundError: If the subreddit does not exist or is inaccessible
            NetworkError: On transport failure, throttling or a malformed response
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")

        sort = SortMode(sort)
        url = f"{self.base_url}/r/{quote(topic, safe='')}/{sort.value}.json"
        params: Dict[str, Any] = {"limit": page_size, "raw_json": 1}
        if continuation_token:
            params["after"] = continuation_token

        logger.debug(f"Fetching r/{topic}/{sort.value} (after={continuation_token or '-'})")
        status, payload = await self._get_json(url, params, "listing")

        if status in _TRANSIENT_STATUSES:
            raise NetworkError(f"HTTP {status} fetching r/{topic}", status)
        if status != 200:
            # Unknown subreddits redirect to the search page; private ones are 403.
            raise NotFoundError(topic, status)

        try:
            page = listing_to_page(payload, include_thumbnails, include_awards)
        except MalformedPayloadError as e:
            raise NetworkError(f"Malformed listing for r/{topic}: {e}") from e

        logger.debug(f"Fetched {len(page.items)} items from r/{topic} (next={page.continuation_token or '-'})")
        return page

    async def search_topics(self, query: str, limit: int = 5) -> List[SearchResult]:
        """
        Search subreddits by name or description.

        Args:
            query: Search string, passed through unchanged
            limit: Maximum number of results

        Returns:
            Matching subreddits in provider order (empty when nothing matches)

        Raises:
            NetworkError: On transport failure
            SearchError: On a non-OK status or malformed response
        """
        url = f"{self.base_url}/subreddits/search.json"
        status, payload = await self._get_json(url, {"q": query, "limit": limit}, "search")

        if status != 200:
            raise SearchError(f"Failed to search subreddits (HTTP {status})", status)

        try:
            return search_to_results(payload)
        except MalformedPayloadError as e:
            raise SearchError(f"Malformed search response: {e}") from e
