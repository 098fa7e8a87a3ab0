"""Data models for lanes, feed items and settings."""

from reddit_lanes.models.item import Item, Page, SearchResult
from reddit_lanes.models.lane import LanePhase, LaneState, SortMode
from reddit_lanes.models.settings import AppSettings, Theme

__all__ = [
    "AppSettings",
    "Item",
    "LanePhase",
    "LaneState",
    "Page",
    "SearchResult",
    "SortMode",
    "Theme",
]
