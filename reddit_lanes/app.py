"""Application facade exposing the user-facing lane operations."""

import logging
from typing import List, Optional, Union

from reddit_lanes.config import Config
from reddit_lanes.lanes import carousel
from reddit_lanes.lanes.carousel import CarouselView, ViewportClass
from reddit_lanes.lanes.controller import LaneController
from reddit_lanes.lanes.registry import LaneRegistry
from reddit_lanes.lanes.search import SearchDebouncer
from reddit_lanes.models.item import SearchResult
from reddit_lanes.models.lane import SortMode
from reddit_lanes.models.settings import AppSettings
from reddit_lanes.reddit_client import ContentProviderClient
from reddit_lanes.storage.settings_store import SettingsStore
from reddit_lanes.storage.state_store import JsonFileStateStore, StateStore

logger = logging.getLogger(__name__)


class LaneFeedApp:
    """
    Wires the client, settings, registry, search and carousel together.

    This is the surface a presentation layer talks to: every method maps to
    one user action, and ``carousel_view()`` / ``visible_lanes()`` describe
    what should be on screen.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        state_store: Optional[StateStore] = None,
        client: Optional[ContentProviderClient] = None,
        prometheus_exporter=None,
    ):
        self.config = config or Config()
        self.state_store = state_store or JsonFileStateStore(self.config.state_dir)
        self.client = client or ContentProviderClient(self.config.provider, prometheus_exporter=prometheus_exporter)
        self.prometheus_exporter = prometheus_exporter

        self.settings_store = SettingsStore(self.state_store)
        self.registry = LaneRegistry(
            self.client,
            self.settings_store,
            self.state_store,
            page_size=self.config.provider.page_size,
            prometheus_exporter=prometheus_exporter,
        )
        self.search = SearchDebouncer(
            self.client,
            delay_sec=self.config.search.debounce_ms / 1000.0,
            min_query_length=self.config.search.min_query_length,
            limit=self.config.provider.search_limit,
            prometheus_exporter=prometheus_exporter,
        )

        self.window_size = self.config.carousel.window_size
        self.viewport = ViewportClass.WIDE
        self.offset = 0

    async def start(self) -> None:
        """Open the HTTP session and restore the persisted lanes."""
        await self.client.initialize()
        await self.registry.restore(self.config.default_subreddits)

    async def close(self) -> None:
        self.search.close()
        await self.registry.close()
        await self.client.close()

    async def __aenter__(self) -> "LaneFeedApp":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def settings(self) -> AppSettings:
        return self.settings_store.get()

    # Lanes

    async def add_topic(self, topic: str) -> LaneController:
        """
        Open a lane for a topic, typically picked from search results.

        Raises:
            DuplicateTopicError: If the topic is already open
            NotFoundError: If the topic does not exist or is private
            NetworkError: If the validation fetch fails in transport
        """
        controller = await self.registry.add(topic)
        self.search.clear()
        return controller

    def remove_lane(self, topic: str) -> None:
        self.registry.remove(topic)
        self.offset = carousel.clamp_offset(self.offset, len(self.registry), self.window_size)

    async def change_sort(self, topic: str, sort: Union[SortMode, str]) -> None:
        await self.registry.get(topic).change_sort(SortMode(sort))

    async def load_more(self, topic: str) -> None:
        await self.registry.get(topic).load_more()

    async def refresh_lane(self, topic: str) -> None:
        await self.registry.get(topic).refresh()

    # Settings

    def toggle_auto_refresh(self) -> AppSettings:
        return self.settings_store.toggle_auto_refresh()

    def toggle_theme(self) -> AppSettings:
        return self.settings_store.toggle_theme()

    def update_settings(self, **fields) -> AppSettings:
        return self.settings_store.update(**fields)

    # Carousel

    def set_viewport(self, viewport: Union[ViewportClass, int]) -> None:
        """Set the viewport class directly or from a width in pixels."""
        if isinstance(viewport, int):
            viewport = carousel.classify_viewport(viewport, self.config.carousel.narrow_breakpoint_px)
        self.viewport = ViewportClass(viewport)

    def navigate_prev(self) -> CarouselView:
        if self.viewport != ViewportClass.WIDE:
            return self.carousel_view()
        self.offset = carousel.prev_offset(self.offset, len(self.registry), self.window_size)
        return self.carousel_view()

    def navigate_next(self) -> CarouselView:
        if self.viewport != ViewportClass.WIDE:
            return self.carousel_view()
        self.offset = carousel.next_offset(self.offset, len(self.registry), self.window_size)
        return self.carousel_view()

    def carousel_view(self) -> CarouselView:
        return carousel.window(self.registry.list(), self.offset, self.viewport, self.window_size)

    def visible_lanes(self) -> List[LaneController]:
        return [self.registry.get(topic) for topic in self.carousel_view().visible]

    # Search

    def on_search_input(self, query: str) -> None:
        self.search.on_query_change(query)

    @property
    def search_results(self) -> List[SearchResult]:
        return self.search.results
