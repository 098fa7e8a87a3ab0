"""Debounced search-as-you-type for subreddits to add."""

import logging
from typing import Callable, List, Optional

from reddit_lanes.errors import LaneFeedError
from reddit_lanes.lanes.timers import CancellableTimer
from reddit_lanes.models.item import SearchResult
from reddit_lanes.reddit_client import ContentProviderClient

logger = logging.getLogger(__name__)


class SearchDebouncer:
    """
    Coalesces rapid query edits into at most one outstanding provider search.

    Each edit restarts a quiescence timer. When it elapses the latest query
    is searched once; results are applied only if no newer edit happened
    while the call was in flight. Failures are logged, never raised.
    """

    def __init__(
        self,
        client: ContentProviderClient,
        delay_sec: float = 0.3,
        min_query_length: int = 2,
        limit: int = 5,
        on_results: Optional[Callable[[List[SearchResult]], None]] = None,
        prometheus_exporter=None,
    ):
        """
        Initialize the debouncer.

        Args:
            client: Provider client used for searches
            delay_sec: Quiescence window before a search is issued
            min_query_length: Shorter queries never reach the provider
            limit: Maximum results per search
            on_results: Optional callback invoked with applied results
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.client = client
        self.min_query_length = min_query_length
        self.limit = limit
        self.on_results = on_results
        self.prometheus_exporter = prometheus_exporter

        self.query = ""
        self.results: List[SearchResult] = []
        self.last_error: Optional[Exception] = None

        self._generation = 0
        self._timer = CancellableTimer(delay_sec, self._search, name="search debounce")

    @property
    def pending(self) -> bool:
        return self._timer.active

    def on_query_change(self, query: str) -> None:
        """Record a new query value and restart the quiescence timer."""
        self._generation += 1
        self.query = query.strip()

        if len(self.query) < self.min_query_length:
            self._timer.cancel()
            self.results = []
            logger.debug(f"Search suppressed for short query {self.query!r}")
            return

        self._timer.schedule()

    async def drain(self) -> None:
        """Wait for the pending search, if any, to be issued and settled."""
        await self._timer.wait()

    def clear(self) -> None:
        """Forget the current query and results, dropping anything in flight."""
        self._generation += 1
        self._timer.cancel()
        self.query = ""
        self.results = []
        self.last_error = None

    def close(self) -> None:
        self._timer.cancel()

    async def _search(self) -> None:
        generation = self._generation
        query = self.query
        logger.debug(f"Searching subreddits for {query!r}")

        try:
            results = await self.client.search_topics(query, limit=self.limit)
        except LaneFeedError as e:
            if generation != self._generation:
                self._record("stale")
                return
            logger.warning(f"Failed to search subreddits for {query!r}: {e}")
            self._record("error")
            self.results = []
            self.last_error = e
            return

        if generation != self._generation:
            logger.debug(f"Discarding stale search results for {query!r}")
            self._record("stale")
            return

        self.results = results
        self.last_error = None
        self._record("applied")
        if self.on_results:
            self.on_results(results)

    def _record(self, outcome: str) -> None:
        if self.prometheus_exporter:
            self.prometheus_exporter.record_search(outcome)
            if outcome == "stale":
                self.prometheus_exporter.record_stale_response("search")
