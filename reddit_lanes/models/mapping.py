"""Mapping functions to convert raw Reddit JSON records to our data models."""

import logging
from typing import Any, Dict, List, Optional

from reddit_lanes.models.item import Item, Page, SearchResult

logger = logging.getLogger(__name__)

PERMALINK_BASE = "https://reddit.com"

# Placeholder values Reddit puts in ``thumbnail`` when there is no image.
_THUMBNAIL_PLACEHOLDERS = {"", "self", "default", "nsfw", "spoiler", "image"}


class MalformedPayloadError(ValueError):
    """The response envelope does not have the expected listing shape."""


def _thumbnail_url(raw: Dict[str, Any]) -> Optional[str]:
    thumbnail = raw.get("thumbnail")
    if not isinstance(thumbnail, str) or thumbnail in _THUMBNAIL_PLACEHOLDERS:
        return None
    if not thumbnail.startswith(("http://", "https://")):
        return None
    return thumbnail


def _permalink(raw: Dict[str, Any]) -> str:
    permalink = raw.get("permalink")
    if not isinstance(permalink, str):
        permalink = ""
    if permalink.startswith(("http://", "https://")):
        return permalink
    return f"{PERMALINK_BASE}{permalink}"


def post_to_item(
    raw: Dict[str, Any],
    include_thumbnails: bool = True,
    include_awards: bool = True,
) -> Item:
    """
    Convert a raw listing child (the ``data`` object of a ``t3`` thing) to an Item.

    Args:
        raw: The submission record as returned by the listing endpoint
        include_thumbnails: Keep the thumbnail URL on the item
        include_awards: Keep the award count on the item

    Returns:
        A validated Item

    Raises:
        KeyError: If the record has no id
        ValueError: If a field cannot be coerced to its schema type
    """
    # Handle potentially missing author (deleted accounts)
    author = raw.get("author") or "[deleted]"

    body_text: Optional[str] = None
    if raw.get("is_self") and raw.get("selftext"):
        body_text = raw["selftext"]

    ratio = float(raw.get("upvote_ratio") or 0.0)

    return Item(
        id=raw["id"],
        title=raw.get("title") or "",
        author=author,
        score=raw.get("score") or 0,
        upvote_ratio=min(max(ratio, 0.0), 1.0),
        num_comments=max(int(raw.get("num_comments") or 0), 0),
        created_at=raw.get("created_utc") or 0.0,
        permalink=_permalink(raw),
        domain=raw.get("domain") or "",
        url=raw.get("url"),
        thumbnail_url=_thumbnail_url(raw) if include_thumbnails else None,
        body_text=body_text,
        award_count=(raw.get("total_awards_received") or 0) if include_awards else 0,
        is_video=bool(raw.get("is_video")),
        post_hint=raw.get("post_hint"),
        over_18=bool(raw.get("over_18")),
    )


def _children(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise MalformedPayloadError("Response has no 'data' object")
    children = payload["data"].get("children")
    if not isinstance(children, list):
        raise MalformedPayloadError("Response has no 'children' list")
    return [
        child["data"]
        for child in children
        if isinstance(child, dict) and isinstance(child.get("data"), dict)
    ]


def listing_to_page(
    payload: Any,
    include_thumbnails: bool = True,
    include_awards: bool = True,
) -> Page:
    """
    Convert a listing response body to a Page.

    Records that fail validation are skipped with a warning.

    Raises:
        MalformedPayloadError: If the envelope itself is malformed
    """
    items = []
    for raw in _children(payload):
        try:
            items.append(post_to_item(raw, include_thumbnails, include_awards))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed submission {raw.get('id', '?')}: {e}")

    after = payload["data"].get("after")
    return Page(items=items, continuation_token=after if isinstance(after, str) else "")


def subreddit_to_result(raw: Dict[str, Any]) -> SearchResult:
    """Convert a raw subreddit record (``t5`` data) to a SearchResult."""
    return SearchResult(
        topic=raw["display_name"],
        subscriber_count=max(int(raw.get("subscribers") or 0), 0),
        description=raw.get("public_description") or "",
    )


def search_to_results(payload: Any) -> List[SearchResult]:
    """
    Convert a subreddit search response body to SearchResults.

    Raises:
        MalformedPayloadError: If the envelope itself is malformed
    """
    results = []
    for raw in _children(payload):
        try:
            results.append(subreddit_to_result(raw))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed subreddit record: {e}")
    return results
