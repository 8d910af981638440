"""Domain models for work sessions and their segments."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Activity(Enum):
    """Activity recorded by a segment."""

    WORKING = "working"
    ON_BREAK = "on break"


class WorkdayState(Enum):
    """State of the single global workday."""

    NO_OPEN_SESSION = "no_open_session"
    OPEN_WORKING = "open_working"
    OPEN_ON_BREAK = "open_on_break"


@dataclass(frozen=True)
class SessionRecord:
    """Represents one continuous workday."""

    id: int
    start: datetime
    end: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class SegmentRecord:
    """A contiguous span of one activity inside a session."""

    id: int
    session_id: int
    start: datetime
    end: datetime | None
    activity: Activity

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class WorkdaySnapshot:
    """A session together with its segments ordered by start."""

    session: SessionRecord | None = None
    segments: list[SegmentRecord] = field(default_factory=list)

    @property
    def state(self) -> WorkdayState:
        """Derive the state machine state from the snapshot."""
        if self.session is None or not self.session.is_open:
            return WorkdayState.NO_OPEN_SESSION
        open_segment = next((seg for seg in self.segments if seg.is_open), None)
        if open_segment is not None and open_segment.activity is Activity.ON_BREAK:
            return WorkdayState.OPEN_ON_BREAK
        return WorkdayState.OPEN_WORKING
