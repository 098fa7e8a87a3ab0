"""Human-readable formatting for subscriber counts, ages and item lines."""

import time
from typing import Optional

from reddit_lanes.models.item import Item
from reddit_lanes.models.settings import AppSettings

_AGE_UNITS = (
    (365 * 24 * 3600, "y"),
    (30 * 24 * 3600, "mo"),
    (7 * 24 * 3600, "w"),
    (24 * 3600, "d"),
    (3600, "h"),
    (60, "m"),
)


def format_subscribers(count: int) -> str:
    """Format a subscriber count as e.g. ``"950"``, ``"12.3k"`` or ``"4.1M"``."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}k"
    return str(count)


def time_ago(created_at: float, now: Optional[float] = None) -> str:
    """Format an epoch timestamp relative to ``now``, e.g. ``"3h ago"``."""
    elapsed = max(0, int((now if now is not None else time.time()) - created_at))
    for seconds, suffix in _AGE_UNITS:
        if elapsed >= seconds:
            return f"{elapsed // seconds}{suffix} ago"
    return "just now"


def format_item(item: Item, settings: AppSettings, now: Optional[float] = None) -> str:
    """Render one item as a single line (two in non-compact mode)."""
    line = f"[{item.score:>6}] {item.title}"
    if settings.show_awards and item.award_count > 0:
        line += f" (+{item.award_count} awards)"
    if settings.compact_mode:
        return line
    details = f"         u/{item.author} · {time_ago(item.created_at, now)} · {item.num_comments} comments · {item.domain}"
    return f"{line}\n{details}"
