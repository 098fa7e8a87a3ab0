"""Error taxonomy for the lane feed core."""

from typing import Optional


class LaneFeedError(Exception):
    """Base class for all errors raised by the lane feed core."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NetworkError(LaneFeedError):
    """Transport-level failure: DNS, timeout, refused connection, rate limiting."""


class NotFoundError(LaneFeedError):
    """The topic does not exist, is private, or is otherwise inaccessible."""

    def __init__(self, topic: str, status_code: Optional[int] = None):
        self.topic = topic
        super().__init__(f"Subreddit r/{topic} not found or is private", status_code)


class DuplicateTopicError(LaneFeedError):
    """The topic already has an open lane."""

    def __init__(self, topic: str):
        self.topic = topic
        super().__init__(f"Subreddit r/{topic} is already added")


class SearchError(LaneFeedError):
    """A topic search call failed."""
