"""Pure windowing arithmetic for the horizontal lane carousel."""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

DEFAULT_WINDOW_SIZE = 3
NARROW_BREAKPOINT_PX = 768


class ViewportClass(str, Enum):
    NARROW = "narrow"
    WIDE = "wide"


@dataclass(frozen=True)
class CarouselView:
    """The lanes currently visible and the offset they were sliced at."""

    visible: Tuple[str, ...]
    offset: int
    can_go_prev: bool = False
    can_go_next: bool = False


def classify_viewport(width_px: int, breakpoint_px: int = NARROW_BREAKPOINT_PX) -> ViewportClass:
    """Narrow at or below the breakpoint width, wide above it."""
    return ViewportClass.NARROW if width_px <= breakpoint_px else ViewportClass.WIDE


def max_offset(lane_count: int, window_size: int = DEFAULT_WINDOW_SIZE) -> int:
    return max(0, lane_count - window_size)


def clamp_offset(offset: int, lane_count: int, window_size: int = DEFAULT_WINDOW_SIZE) -> int:
    return min(max(offset, 0), max_offset(lane_count, window_size))


def prev_offset(offset: int, lane_count: int, window_size: int = DEFAULT_WINDOW_SIZE) -> int:
    """Step the window one lane left, stopping at 0."""
    return clamp_offset(offset - 1, lane_count, window_size)


def next_offset(offset: int, lane_count: int, window_size: int = DEFAULT_WINDOW_SIZE) -> int:
    """Step the window one lane right, stopping at the last full window."""
    return clamp_offset(offset + 1, lane_count, window_size)


def window(
    topics: Sequence[str],
    offset: int,
    viewport: ViewportClass,
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> CarouselView:
    """
    Compute the visible slice of lanes.

    On a narrow viewport every lane is returned (reached by scrolling) and
    the offset is 0. On a wide viewport at most ``window_size`` lanes are
    returned starting at the clamped offset; with ``window_size`` lanes or
    fewer the whole list is shown and navigation is disabled.

    Args:
        topics: All open topics in order
        offset: Requested index of the first visible lane
        viewport: Viewport class of the display
        window_size: Lanes visible at once on a wide viewport

    Returns:
        CarouselView with the visible topics and the clamped offset
    """
    if window_size < 1:
        raise ValueError("window_size must be at least 1")

    if viewport == ViewportClass.NARROW or len(topics) <= window_size:
        return CarouselView(visible=tuple(topics), offset=0)

    clamped = clamp_offset(offset, len(topics), window_size)
    return CarouselView(
        visible=tuple(topics[clamped:clamped + window_size]),
        offset=clamped,
        can_go_prev=clamped > 0,
        can_go_next=clamped < max_offset(len(topics), window_size),
    )
