"""Lane state types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from reddit_lanes.models.item import Item


class SortMode(str, Enum):
    """Listing sort order, scoped per lane."""

    HOT = "hot"
    NEW = "new"
    TOP = "top"
    RISING = "rising"


class LanePhase(str, Enum):
    """Lifecycle phase of a lane's feed."""

    IDLE = "idle"
    LOADING = "loading"
    LOADING_MORE = "loading_more"
    READY = "ready"
    ERROR = "error"


IN_FLIGHT_PHASES = frozenset({LanePhase.LOADING, LanePhase.LOADING_MORE})


@dataclass
class LaneState:
    """Mutable state of one lane, owned by its LaneController."""

    topic: str
    sort: SortMode = SortMode.HOT
    items: List[Item] = field(default_factory=list)
    continuation_token: str = ""
    phase: LanePhase = LanePhase.IDLE
    last_error: Optional[Exception] = None
    last_updated: Optional[float] = None

    @property
    def has_more(self) -> bool:
        """True while the provider has reported a next page."""
        return bool(self.continuation_token)

    @property
    def in_flight(self) -> bool:
        return self.phase in IN_FLIGHT_PHASES
