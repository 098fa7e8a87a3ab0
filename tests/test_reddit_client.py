"""Tests for the Reddit JSON client."""

import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from reddit_lanes.config import ProviderConfig
from reddit_lanes.errors import NetworkError, NotFoundError, SearchError
from reddit_lanes.models.lane import SortMode
from reddit_lanes.reddit_client import ContentProviderClient


def listing(children, after=None, kind="t3"):
    return {
        "kind": "Listing",
        "data": {
            "after": after,
            "children": [{"kind": kind, "data": child} for child in children],
        },
    }


def post(post_id, **overrides):
    raw = {
        "id": post_id,
        "title": f"Title {post_id}",
        "author": "alice",
        "score": 42,
        "upvote_ratio": 0.95,
        "num_comments": 7,
        "created_utc": 1700000000.0,
        "permalink": f"/r/python/comments/{post_id}/title/",
        "domain": "self.python",
        "url": f"https://www.reddit.com/r/python/comments/{post_id}/title/",
        "thumbnail": "self",
        "is_self": True,
        "selftext": "body",
        "total_awards_received": 1,
    }
    raw.update(overrides)
    return raw


class TestContentProviderClient(unittest.TestCase):
    """Test cases for the ContentProviderClient class."""

    def setUp(self):
        """Set up a client over a mocked aiohttp session."""
        self.session = MagicMock()
        self.session.close = AsyncMock()
        self.response = MagicMock()
        self.response.status = 200
        self.response.json = AsyncMock(return_value=listing([]))
        self.session.get.return_value.__aenter__.return_value = self.response
        self.session.get.return_value.__aexit__.return_value = False

        self.client = ContentProviderClient(ProviderConfig(base_url="https://example.test/"), session=self.session)

    def test_fetch_page_first_page(self):
        """Test fetching a first page builds the listing request and maps items."""
        self.response.json.return_value = listing([post("a"), post("b")], after="t3_b")

        page = asyncio.run(self.client.fetch_page("python", SortMode.NEW, page_size=10))

        self.session.get.assert_called_once_with(
            "https://example.test/r/python/new.json",
            params={"limit": 10, "raw_json": 1},
            allow_redirects=False,
        )
        self.assertEqual([item.id for item in page.items], ["a", "b"])
        self.assertEqual(page.continuation_token, "t3_b")
        self.assertTrue(page.has_more)
        self.assertEqual(page.items[0].permalink, "https://reddit.com/r/python/comments/a/title/")

    def test_fetch_page_with_continuation_token(self):
        """Test the continuation token is sent as the 'after' cursor."""
        asyncio.run(self.client.fetch_page("python", continuation_token="t3_xyz"))

        _, kwargs = self.session.get.call_args
        self.assertEqual(kwargs["params"]["after"], "t3_xyz")

    def test_fetch_page_end_of_feed(self):
        """Test a null 'after' becomes an empty continuation token."""
        self.response.json.return_value = listing([post("a")], after=None)

        page = asyncio.run(self.client.fetch_page("python"))

        self.assertEqual(page.continuation_token, "")
        self.assertFalse(page.has_more)

    def test_fetch_page_respects_display_flags(self):
        """Test thumbnails and awards are dropped when not requested."""
        self.response.json.return_value = listing(
            [post("a", thumbnail="https://b.thumbs.redditmedia.com/x.jpg", total_awards_received=3)]
        )

        page = asyncio.run(self.client.fetch_page("python", include_thumbnails=False, include_awards=False))

        self.assertIsNone(page.items[0].thumbnail_url)
        self.assertEqual(page.items[0].award_count, 0)

    def test_fetch_page_redirect_is_not_found(self):
        """Test unknown subreddits (redirected to search) raise NotFoundError."""
        self.response.status = 302

        with self.assertRaises(NotFoundError) as ctx:
            asyncio.run(self.client.fetch_page("doesnotexist"))

        self.assertEqual(ctx.exception.topic, "doesnotexist")
        self.assertEqual(ctx.exception.status_code, 302)

    def test_fetch_page_forbidden_is_not_found(self):
        """Test private subreddits raise NotFoundError."""
        for status in (403, 404):
            self.response.status = status
            with self.assertRaises(NotFoundError):
                asyncio.run(self.client.fetch_page("privatesub"))

    def test_fetch_page_server_errors_are_network_errors(self):
        """Test throttling and 5xx responses raise NetworkError."""
        for status in (429, 500, 503):
            self.response.status = status
            with self.assertRaises(NetworkError) as ctx:
                asyncio.run(self.client.fetch_page("python"))
            self.assertEqual(ctx.exception.status_code, status)

    def test_fetch_page_timeout(self):
        """Test a timeout raises NetworkError."""
        self.session.get.side_effect = asyncio.TimeoutError()

        with self.assertRaises(NetworkError):
            asyncio.run(self.client.fetch_page("python"))

    def test_fetch_page_connection_error(self):
        """Test a transport failure raises NetworkError."""
        self.session.get.side_effect = aiohttp.ClientConnectionError("refused")

        with self.assertRaises(NetworkError):
            asyncio.run(self.client.fetch_page("python"))

    def test_fetch_page_invalid_json(self):
        """Test an undecodable body raises NetworkError."""
        self.response.json.side_effect = ValueError("Expecting value")

        with self.assertRaises(NetworkError):
            asyncio.run(self.client.fetch_page("python"))

    def test_fetch_page_malformed_listing(self):
        """Test a body without a listing envelope raises NetworkError."""
        self.response.json.return_value = {"kind": "Listing"}

        with self.assertRaises(NetworkError):
            asyncio.run(self.client.fetch_page("python"))

    def test_fetch_page_rejects_bad_page_size(self):
        """Test a non-positive page size is rejected before any request."""
        with self.assertRaises(ValueError):
            asyncio.run(self.client.fetch_page("python", page_size=0))
        self.session.get.assert_not_called()

    def test_search_topics(self):
        """Test searching subreddits maps t5 records to results."""
        self.response.json.return_value = listing(
            [
                {"display_name": "Python", "subscribers": 1200000, "public_description": "News about Python"},
                {"display_name": "pythontips", "subscribers": None, "public_description": None},
            ],
            kind="t5",
        )

        results = asyncio.run(self.client.search_topics("pyth", limit=5))

        self.session.get.assert_called_once_with(
            "https://example.test/subreddits/search.json",
            params={"q": "pyth", "limit": 5},
            allow_redirects=False,
        )
        self.assertEqual([r.topic for r in results], ["Python", "pythontips"])
        self.assertEqual(results[0].subscriber_count, 1200000)
        self.assertEqual(results[1].subscriber_count, 0)
        self.assertEqual(results[1].description, "")

    def test_search_topics_http_error(self):
        """Test a non-OK search status raises SearchError."""
        self.response.status = 500

        with self.assertRaises(SearchError):
            asyncio.run(self.client.search_topics("pyth"))

    def test_search_topics_malformed(self):
        """Test a malformed search body raises SearchError."""
        self.response.json.return_value = []

        with self.assertRaises(SearchError):
            asyncio.run(self.client.search_topics("pyth"))

    def test_close_leaves_external_session_open(self):
        """Test close does not close a session the client does not own."""
        asyncio.run(self.client.close())
        self.session.close.assert_not_awaited()

    def test_owned_session_lifecycle(self):
        """Test the client creates and closes its own session."""
        with patch("reddit_lanes.reddit_client.aiohttp.ClientSession") as mock_session_cls:
            owned = MagicMock()
            owned.close = AsyncMock()
            mock_session_cls.return_value = owned
            client = ContentProviderClient(ProviderConfig(user_agent="test-agent"))

            async def run():
                async with client as entered:
                    self.assertIs(entered, client)

            asyncio.run(run())

            _, kwargs = mock_session_cls.call_args
            self.assertEqual(kwargs["headers"], {"User-Agent": "test-agent"})
            owned.close.assert_awaited_once()

    def test_records_request_duration(self):
        """Test requests are timed when an exporter is configured."""
        exporter = MagicMock()
        client = ContentProviderClient(session=self.session, prometheus_exporter=exporter)

        asyncio.run(client.fetch_page("python"))

        exporter.time_request.assert_called_once_with("listing")


if __name__ == "__main__":
    unittest.main()
