"""Ordered, persisted collection of open lanes."""

import logging
from typing import Dict, Iterable, List, Optional

from reddit_lanes.errors import DuplicateTopicError, LaneFeedError
from reddit_lanes.lanes.controller import LaneController
from reddit_lanes.models.lane import SortMode
from reddit_lanes.models.settings import AppSettings
from reddit_lanes.reddit_client import ContentProviderClient
from reddit_lanes.storage.settings_store import SettingsStore
from reddit_lanes.storage.state_store import StateStore

logger = logging.getLogger(__name__)

LANES_KEY = "subreddits"
DEFAULT_TOPICS = ("programming", "javascript")


class LaneRegistry:
    """
    The set of open lanes, in insertion order.

    Topics are unique (case-sensitive exact match). The order is persisted
    under the ``"subreddits"`` key on every change and restored verbatim.
    """

    def __init__(
        self,
        client: ContentProviderClient,
        settings_store: SettingsStore,
        state_store: StateStore,
        page_size: int = 25,
        prometheus_exporter=None,
    ):
        """
        Initialize an empty registry.

        Args:
            client: Provider client shared by every lane
            settings_store: Settings read by every lane
            state_store: Backing store for the lane order blob
            page_size: Items requested per page by each lane
            prometheus_exporter: Optional Prometheus exporter for metrics
        """
        self.client = client
        self.settings_store = settings_store
        self.state_store = state_store
        self.page_size = page_size
        self.prometheus_exporter = prometheus_exporter
        self._lanes: Dict[str, LaneController] = {}
        self._unsubscribe = settings_store.subscribe(self._on_settings_changed)

    def __len__(self) -> int:
        return len(self._lanes)

    def __contains__(self, topic: str) -> bool:
        return topic in self._lanes

    def list(self) -> List[str]:  # noqa: A003
        """Return the open topics in insertion order."""
        return list(self._lanes)

    def lanes(self) -> List[LaneController]:
        return list(self._lanes.values())

    def get(self, topic: str) -> LaneController:
        """
        Return the controller for an open topic.

        Raises:
            KeyError: If no lane is open for the topic
        """
        try:
            return self._lanes[topic]
        except KeyError:
            raise KeyError(f"No open lane for r/{topic}") from None

    async def add(self, topic: str) -> LaneController:
        """
        Open a lane for ``topic``.

        The topic is validated with one validation fetch before any state is
        created. On success the lane starts its initial load immediately and
        is in the Loading phase when this returns.

        Raises:
            DuplicateTopicError: If the topic is already open
            NotFoundError: If the validation fetch finds no such (accessible) subreddit
            NetworkError: If the validation fetch fails in transport
        """
        topic = topic.strip()
        if not topic:
            raise ValueError("topic must not be empty")
        if topic in self._lanes:
            raise DuplicateTopicError(topic)

        try:
            await self.client.fetch_page(topic, SortMode.HOT, page_size=self.page_size)
        except LaneFeedError as e:
            logger.warning(f"Rejected r/{topic}: {e}")
            if self.prometheus_exporter:
                self.prometheus_exporter.record_api_error(type(e).__name__)
            raise

        # Another add of the same topic may have completed during the validation fetch.
        if topic in self._lanes:
            raise DuplicateTopicError(topic)

        controller = self._open(topic)
        self._persist()
        logger.info(f"Added lane r/{topic} ({len(self._lanes)} open)")
        return controller

    def remove(self, topic: str) -> bool:
        """
        Close the lane for ``topic``. Removing an absent topic is a no-op.

        Returns:
            True if a lane was removed
        """
        controller = self._lanes.pop(topic, None)
        if controller is None:
            return False
        controller.dispose()
        self._persist()
        logger.info(f"Removed lane r/{topic} ({len(self._lanes)} open)")
        return True

    async def restore(
        self,
        default_topics: Optional[Iterable[str]] = None,
        start: bool = True,
    ) -> List[str]:
        """
        Reopen the persisted lanes without probing them.

        Falls back to ``default_topics`` when the blob is absent or malformed.
        Duplicate entries in the stored order are dropped.

        Args:
            default_topics: Topics to open when nothing usable is stored
            start: Begin loading each lane (False only rebuilds the order)

        Returns:
            The restored topics
        """
        stored = self.state_store.get(LANES_KEY)
        if isinstance(stored, list) and all(isinstance(t, str) for t in stored):
            topics = stored
        else:
            if stored is not None:
                logger.warning("Ignoring malformed lane order blob; using defaults")
            topics = list(default_topics if default_topics is not None else DEFAULT_TOPICS)

        for topic in topics:
            if topic in self._lanes:
                logger.warning(f"Dropping duplicate lane r/{topic} from stored order")
                continue
            self._open(topic, start=start)

        self._persist()
        logger.info(f"Restored {len(self._lanes)} lanes")
        return self.list()

    async def close(self) -> None:
        """Dispose every lane, leaving the persisted order untouched."""
        for controller in self._lanes.values():
            controller.dispose()
        self._unsubscribe()

    def _open(self, topic: str, start: bool = True) -> LaneController:
        controller = LaneController(
            topic,
            self.client,
            self.settings_store,
            page_size=self.page_size,
            prometheus_exporter=self.prometheus_exporter,
        )
        self._lanes[topic] = controller
        if start:
            controller.start()
            controller.sync_auto_refresh()
        if self.prometheus_exporter:
            self.prometheus_exporter.set_open_lanes(len(self._lanes))
        return controller

    def _persist(self) -> None:
        self.state_store.set(LANES_KEY, self.list())
        if self.prometheus_exporter:
            self.prometheus_exporter.set_open_lanes(len(self._lanes))

    def _on_settings_changed(self, previous: AppSettings, current: AppSettings) -> None:
        if (
            previous.auto_refresh == current.auto_refresh
            and previous.refresh_interval_ms == current.refresh_interval_ms
        ):
            return
        for controller in self._lanes.values():
            controller.sync_auto_refresh()
