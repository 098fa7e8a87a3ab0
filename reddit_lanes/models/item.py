"""
Pydantic schemas for normalized feed data.

Raw provider records are mapped into these models at the client boundary
(see ``reddit_lanes.models.mapping``); nothing downstream looks at raw JSON.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Item(BaseModel):
    """One normalized submission shown in a lane."""

    model_config = ConfigDict(frozen=True)

    id: str  # noqa: A003
    title: str
    author: str
    score: int  # may be negative
    upvote_ratio: float = Field(ge=0.0, le=1.0)
    num_comments: int = Field(ge=0)
    created_at: float  # Unix epoch seconds
    permalink: str  # absolute URL to the comments page
    domain: str
    url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    body_text: Optional[str] = None  # self-posts only
    award_count: int = Field(default=0, ge=0)
    is_video: bool = False
    post_hint: Optional[str] = None
    over_18: bool = False


class Page(BaseModel):
    """Result of one listing fetch."""

    model_config = ConfigDict(frozen=True)

    items: List[Item] = Field(default_factory=list)
    # Empty string means there are no further pages.
    continuation_token: str = ""

    @property
    def has_more(self) -> bool:
        return bool(self.continuation_token)


class SearchResult(BaseModel):
    """One subreddit returned by a topic search."""

    model_config = ConfigDict(frozen=True)

    topic: str
    subscriber_count: int = Field(default=0, ge=0)
    description: str = ""
