"""Provider doubles and builders shared by the test-suite."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional
from unittest.mock import AsyncMock, MagicMock

from reddit_lanes.models.item import Item, Page, SearchResult
from reddit_lanes.models.lane import SortMode
from reddit_lanes.reddit_client import ContentProviderClient


def make_item(item_id: str, **overrides) -> Item:
    """Build a valid Item with sensible defaults."""
    values = {
        "id": item_id,
        "title": f"Post {item_id}",
        "author": "alice",
        "score": 10,
        "upvote_ratio": 0.9,
        "num_comments": 2,
        "created_at": 1700000000.0,
        "permalink": f"https://reddit.com/r/test/comments/{item_id}/",
        "domain": "self.test",
    }
    values.update(overrides)
    return Item(**values)


def make_page(ids: List[str], token: str = "") -> Page:
    return Page(items=[make_item(i) for i in ids], continuation_token=token)


def item_ids(lane) -> List[str]:
    return [item.id for item in lane.state.items]


@dataclass
class PendingCall:
    """One provider call held open until the test resolves it."""

    args: dict
    future: asyncio.Future = field(repr=False)

    @property
    def topic(self) -> Optional[str]:
        return self.args.get("topic")

    @property
    def sort(self) -> Optional[SortMode]:
        return self.args.get("sort")

    @property
    def token(self) -> Optional[str]:
        return self.args.get("continuation_token")

    def resolve(self, value: Any) -> None:
        self.future.set_result(value)

    def fail(self, error: Exception) -> None:
        self.future.set_exception(error)


class ControlledProvider:
    """
    Provider double whose responses are delivered on demand.

    Each call parks on a future; tests pick calls up with ``next_fetch()`` /
    ``next_search()`` and resolve them in whatever order they need, which is
    how out-of-order responses are simulated.
    """

    def __init__(self):
        self.fetches: List[PendingCall] = []
        self.searches: List[PendingCall] = []
        self._fetch_index = 0
        self._search_index = 0

    async def fetch_page(
        self,
        topic,
        sort=SortMode.HOT,
        page_size=25,
        continuation_token=None,
        include_thumbnails=True,
        include_awards=True,
    ):
        call = PendingCall(
            args={
                "topic": topic,
                "sort": sort,
                "page_size": page_size,
                "continuation_token": continuation_token,
                "include_thumbnails": include_thumbnails,
                "include_awards": include_awards,
            },
            future=asyncio.get_running_loop().create_future(),
        )
        self.fetches.append(call)
        return await call.future

    async def search_topics(self, query, limit=5):
        call = PendingCall(
            args={"query": query, "limit": limit},
            future=asyncio.get_running_loop().create_future(),
        )
        self.searches.append(call)
        return await call.future

    async def next_fetch(self, timeout: float = 1.0) -> PendingCall:
        """Wait for the next fetch call not yet handed out."""

        async def _wait():
            while self._fetch_index >= len(self.fetches):
                await asyncio.sleep(0)

        await asyncio.wait_for(_wait(), timeout)
        call = self.fetches[self._fetch_index]
        self._fetch_index += 1
        return call

    async def next_search(self, timeout: float = 1.0) -> PendingCall:
        """Wait for the next search call not yet handed out."""

        async def _wait():
            while self._search_index >= len(self.searches):
                await asyncio.sleep(0)

        await asyncio.wait_for(_wait(), timeout)
        call = self.searches[self._search_index]
        self._search_index += 1
        return call


def mock_client(page: Optional[Page] = None, results: Optional[List[SearchResult]] = None) -> MagicMock:
    """A ContentProviderClient mock that answers immediately."""
    client = MagicMock(spec=ContentProviderClient)
    client.initialize = AsyncMock()
    client.close = AsyncMock()
    client.fetch_page = AsyncMock(return_value=page if page is not None else make_page(["a", "b"], "t1"))
    client.search_topics = AsyncMock(return_value=results or [])
    return client
