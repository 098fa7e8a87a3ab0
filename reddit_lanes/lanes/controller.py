"""Per-lane state machine: loading, pagination, sort changes and auto-refresh."""

import asyncio
import logging
import time
from typing import Optional, Set

from reddit_lanes.errors import LaneFeedError
from reddit_lanes.lanes.timers import CancellableTimer
from reddit_lanes.models.lane import LanePhase, LaneState, SortMode
from reddit_lanes.reddit_client import ContentProviderClient
from reddit_lanes.storage.settings_store import SettingsStore

logger = logging.getLogger(__name__)


class LaneController:
    """
    Owns one lane's feed state and drives its fetches.

    Every fetch takes a new generation number; a response is applied only
    if its generation is still the lane's current one. Anything superseded
    by a later refresh, sort change or disposal is dropped on arrival.
    """

    def __init__(
        self,
        topic: str,
        client: ContentProviderClient,
        settings_store: SettingsStore,
        sort: SortMode = SortMode.HOT,
        page_size: int = 25,
        prometheus_exporter=None,
    ):
        """
        Initialize the controller in the Idle phase.

        Args:
            topic: Subreddit mirrored by this lane
            client: Provider client used for fetches
            settings_store: Read-only source of auto-refresh and display settings
            sort: Initial sort order
            page_size: Items requested per page
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.client = client
        self.settings_store = settings_store
        self.page_size = page_size
        self.prometheus_exporter = prometheus_exporter
        self.state = LaneState(topic=topic, sort=SortMode(sort))

        self._generation = 0
        self._disposed = False
        self._tasks: Set[asyncio.Task] = set()
        self._refresh_timer: Optional[CancellableTimer] = None

    @property
    def topic(self) -> str:
        return self.state.topic

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def auto_refresh_active(self) -> bool:
        return self._refresh_timer is not None and self._refresh_timer.active

    def start(self) -> Optional[asyncio.Task]:
        """
        Begin the initial load without waiting for it.

        The phase is Loading when this returns. No-op while a fetch is in flight.

        Returns:
            The fetch task, or None if nothing was started
        """
        if self.state.in_flight:
            logger.debug(f"r/{self.topic}: load ignored, fetch already in flight")
            return None
        return self._begin(LanePhase.LOADING)

    async def load(self) -> None:
        """Load the first page; a no-op while a fetch is already in flight."""
        await self._await(self.start())

    async def refresh(self) -> None:
        """
        Reload the first page of the current sort, superseding any in-flight fetch.

        Items already shown stay visible until the new page arrives and are
        kept if the refresh fails.
        """
        self.state.continuation_token = ""
        await self._await(self._begin(LanePhase.LOADING))

    async def load_more(self) -> None:
        """
        Append the next page.

        Only runs from Ready with a continuation token; an empty token means
        end-of-feed and the call is a no-op.
        """
        if self.state.phase != LanePhase.READY or not self.state.continuation_token:
            logger.debug(
                f"r/{self.topic}: load_more ignored "
                f"(phase={self.state.phase.value}, has_more={self.state.has_more})"
            )
            return
        await self._await(self._begin(LanePhase.LOADING_MORE))

    async def change_sort(self, new_sort: SortMode) -> None:
        """Switch sort order, clearing the lane and reloading. Same sort is a no-op."""
        new_sort = SortMode(new_sort)
        if new_sort == self.state.sort:
            return
        logger.info(f"r/{self.topic}: sort {self.state.sort.value} -> {new_sort.value}")
        self.state.sort = new_sort
        self.state.items = []
        self.state.continuation_token = ""
        await self._await(self._begin(LanePhase.LOADING))

    async def auto_refresh_tick(self) -> None:
        """Refresh if auto-refresh is on and no fetch is in flight."""
        if self._disposed or not self.settings_store.get().auto_refresh:
            return
        if self.state.phase not in (LanePhase.READY, LanePhase.ERROR):
            logger.debug(f"r/{self.topic}: auto-refresh skipped (phase={self.state.phase.value})")
            return
        logger.debug(f"r/{self.topic}: auto-refresh")
        await self.refresh()

    def sync_auto_refresh(self) -> None:
        """Start, restart or stop the auto-refresh timer to match current settings."""
        settings = self.settings_store.get()
        if self._disposed or not settings.auto_refresh:
            self._stop_auto_refresh()
            return

        interval = settings.refresh_interval_ms / 1000.0
        if self.auto_refresh_active and self._refresh_timer.delay == interval:
            return

        self._stop_auto_refresh()
        self._refresh_timer = CancellableTimer(
            interval, self.auto_refresh_tick, repeat=True, name=f"auto-refresh r/{self.topic}"
        )
        self._refresh_timer.schedule()
        logger.debug(f"r/{self.topic}: auto-refresh every {interval:.1f}s")

    def _stop_auto_refresh(self) -> None:
        if self._refresh_timer is not None:
            self._refresh_timer.cancel()
            self._refresh_timer = None

    def dispose(self) -> None:
        """
        Tear the lane down.

        Cancels auto-refresh and invalidates the current generation so any
        in-flight response is discarded when it arrives. Never blocks.
        """
        if self._disposed:
            return
        self._disposed = True
        self._generation += 1
        self._stop_auto_refresh()
        logger.debug(f"r/{self.topic}: disposed")

    async def settle(self) -> None:
        """Wait until every fetch this lane has started has finished."""
        while self._tasks:
            await asyncio.wait(set(self._tasks))

    def _begin(self, phase: LanePhase) -> Optional[asyncio.Task]:
        if self._disposed:
            logger.debug(f"r/{self.topic}: fetch ignored, lane disposed")
            return None

        self._generation += 1
        self.state.phase = phase
        token = self.state.continuation_token if phase == LanePhase.LOADING_MORE else None

        task = asyncio.get_running_loop().create_task(
            self._fetch(self._generation, phase, self.state.sort, token)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @staticmethod
    async def _await(task: Optional[asyncio.Task]) -> None:
        if task is not None:
            await task

    def _is_current(self, generation: int) -> bool:
        return not self._disposed and generation == self._generation

    def _discard(self, generation: int) -> None:
        logger.debug(
            f"r/{self.topic}: discarding stale response "
            f"(generation {generation}, current {self._generation})"
        )
        if self.prometheus_exporter:
            self.prometheus_exporter.record_stale_response("lane")

    async def _fetch(
        self,
        generation: int,
        phase: LanePhase,
        sort: SortMode,
        token: Optional[str],
    ) -> None:
        settings = self.settings_store.get()
        if self.prometheus_exporter:
            self.prometheus_exporter.record_lane_fetch("more" if phase == LanePhase.LOADING_MORE else "initial")

        try:
            page = await self.client.fetch_page(
                self.topic,
                sort,
                page_size=self.page_size,
                continuation_token=token,
                include_thumbnails=settings.show_thumbnails,
                include_awards=settings.show_awards,
            )
        except LaneFeedError as e:
            if not self._is_current(generation):
                self._discard(generation)
                return
            logger.warning(f"r/{self.topic}: fetch failed: {e}")
            if self.prometheus_exporter:
                self.prometheus_exporter.record_api_error(type(e).__name__)
            self.state.phase = LanePhase.ERROR
            self.state.last_error = e
            return
        except Exception as e:
            if self._is_current(generation):
                logger.error(f"r/{self.topic}: unexpected fetch failure: {e}", exc_info=True)
                if self.prometheus_exporter:
                    self.prometheus_exporter.record_api_error(type(e).__name__)
                self.state.phase = LanePhase.ERROR
                self.state.last_error = e
            raise

        if not self._is_current(generation):
            self._discard(generation)
            return

        if phase == LanePhase.LOADING_MORE:
            self.state.items = self.state.items + list(page.items)
        else:
            self.state.items = list(page.items)
        self.state.continuation_token = page.continuation_token
        self.state.phase = LanePhase.READY
        self.state.last_error = None
        self.state.last_updated = time.time()
        logger.info(
            f"r/{self.topic}: {len(page.items)} items applied "
            f"({len(self.state.items)} total, more={self.state.has_more})"
        )
