"""Workday state machine: one open session with ordered activity segments."""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from workday_tracker.domain.errors import (
    NoOpenSessionError,
    TimestampOrderError,
    WorkdayContractError,
)
from workday_tracker.domain.workday import (
    Activity,
    SegmentRecord,
    SessionRecord,
    WorkdaySnapshot,
)
from workday_tracker.timeutils import isoformat_utc, to_local, to_utc, utc_now

logger = logging.getLogger(__name__)

_NEXT_ACTIVITY = {
    Activity.WORKING: Activity.ON_BREAK,
    Activity.ON_BREAK: Activity.WORKING,
}


class WorkdayRepository(Protocol):
    """Persistence interface for sessions and segments."""

    def create_session(self, start: datetime) -> int:
        """Create an open session and return its id."""

    def close_session(self, session_id: int, end: datetime) -> None:
        """Set the end of a session."""

    def create_segment(
        self,
        session_id: int,
        start: datetime,
        end: datetime | None,
        activity: Activity,
    ) -> int:
        """Create a segment for a session and return its id."""

    def close_segment(self, segment_id: int, end: datetime) -> None:
        """Set the end of a segment."""

    def get_open_session(self) -> SessionRecord | None:
        """Return the open session; more than one is an integrity error."""

    def get_open_segment(self, session_id: int) -> SegmentRecord | None:
        """Return the open segment of a session, if present."""

    def get_segments_for_session(self, session_id: int) -> list[SegmentRecord]:
        """Return a session's segments ordered by start ascending."""

    def get_last_closed_session(self) -> SessionRecord | None:
        """Return the most recently closed session, if present."""


class WorkdayBroadcaster(Protocol):
    """Publishes committed workday snapshots to live viewers."""

    async def publish(self, snapshot: WorkdaySnapshot) -> int:
        """Publish a snapshot and return the number of viewers reached."""


SessionListener = Callable[[WorkdaySnapshot], Awaitable[None]]


@dataclass
class WorkdayService:
    """State machine for toggling and pausing the global workday.

    Every mutation runs its read-modify-write sequence under a lock scoped to
    the workday, so two concurrent requests can never both act on the same
    open session or segment.
    Committed snapshots are broadcast in the order they were committed.
    """

    repository: WorkdayRepository
    broadcaster: WorkdayBroadcaster | None = None
    session_listeners: list[SessionListener] = field(default_factory=list)
    clock: Callable[[], datetime] = utc_now
    display_timezone: str = "UTC"
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    _pending: deque[WorkdaySnapshot] = field(
        default_factory=deque, init=False, repr=False
    )
    _publish_lock: asyncio.Lock = field(
        default_factory=asyncio.Lock, init=False, repr=False
    )

    async def toggle(self, timestamp: datetime | None = None) -> WorkdaySnapshot:
        """Open a session when none is open, otherwise close the open one."""
        moment = self._resolve(timestamp)
        async with self._lock:
            session = self.repository.get_open_session()
            if session is None:
                snapshot = self._open_session(moment)
                opened = True
            else:
                snapshot = self._close_session(session, moment)
                opened = False
            self._pending.append(snapshot)

        await self._flush_broadcasts()
        if opened:
            await self._notify_session_opened(snapshot)
        return snapshot

    async def pause(self, timestamp: datetime | None = None) -> WorkdaySnapshot:
        """Switch the open session between working and on break."""
        moment = self._resolve(timestamp)
        async with self._lock:
            session = self.repository.get_open_session()
            if session is None:
                raise NoOpenSessionError("There is no open workday to pause.")
            segment = self.repository.get_open_segment(session.id)
            if segment is None:
                logger.error(
                    "Open session has no open segment",
                    extra={"session_id": session.id},
                )
                raise WorkdayContractError(
                    f"Session {session.id} is open but has no open segment."
                )
            next_activity = _NEXT_ACTIVITY.get(segment.activity)
            if next_activity is None:
                logger.error(
                    "Open segment has an unknown activity",
                    extra={"segment_id": segment.id, "activity": segment.activity},
                )
                raise WorkdayContractError(
                    f"Segment {segment.id} has unknown activity {segment.activity!r}."
                )
            if moment <= segment.start:
                raise TimestampOrderError(
                    f"Timestamp {isoformat_utc(moment)} is not after the open "
                    f"segment start {isoformat_utc(segment.start)}."
                )
            self.repository.close_segment(segment.id, moment)
            self.repository.create_segment(session.id, moment, None, next_activity)
            snapshot = self._snapshot(session)
            logger.info(
                "Switched session %s to %s at %s",
                session.id,
                next_activity.value,
                self._display(moment),
            )
            self._pending.append(snapshot)

        await self._flush_broadcasts()
        return snapshot

    def get_current_snapshot(self) -> WorkdaySnapshot:
        """Return the open session, else the last closed one, else an empty one."""
        session = self.repository.get_open_session()
        if session is None:
            session = self.repository.get_last_closed_session()
        if session is None:
            return WorkdaySnapshot()
        return self._snapshot(session)

    def get_current_working_seconds(self) -> int:
        """Sum the working segments of the open session, up to now."""
        session = self.repository.get_open_session()
        if session is None:
            return 0
        segments = self.repository.get_segments_for_session(session.id)
        return working_seconds(segments, self.clock())

    def _open_session(self, moment: datetime) -> WorkdaySnapshot:
        session_id = self.repository.create_session(moment)
        self.repository.create_segment(session_id, moment, None, Activity.WORKING)
        logger.info("Opened workday session %s at %s", session_id, self._display(moment))
        return self._snapshot(SessionRecord(id=session_id, start=moment))

    def _close_session(
        self, session: SessionRecord, moment: datetime
    ) -> WorkdaySnapshot:
        segment = self.repository.get_open_segment(session.id)
        boundary = segment.start if segment is not None else session.start
        if moment < boundary:
            raise TimestampOrderError(
                f"Timestamp {isoformat_utc(moment)} is before "
                f"{isoformat_utc(boundary)}."
            )
        if segment is not None:
            self.repository.close_segment(segment.id, moment)
        else:
            logger.error(
                "Closing a session without an open segment",
                extra={"session_id": session.id},
            )
        self.repository.close_session(session.id, moment)
        logger.info("Closed workday session %s at %s", session.id, self._display(moment))
        return self._snapshot(
            SessionRecord(id=session.id, start=session.start, end=moment)
        )

    def _snapshot(self, session: SessionRecord) -> WorkdaySnapshot:
        return WorkdaySnapshot(
            session=session,
            segments=self.repository.get_segments_for_session(session.id),
        )

    def _resolve(self, timestamp: datetime | None) -> datetime:
        return to_utc(timestamp) if timestamp is not None else self.clock()

    def _display(self, moment: datetime) -> str:
        return to_local(moment, self.display_timezone).strftime("%H:%M:%S")

    async def _flush_broadcasts(self) -> None:
        # Snapshots are queued under the workday lock, so draining the queue
        # in order publishes them in commit order.
        async with self._publish_lock:
            while self._pending:
                snapshot = self._pending.popleft()
                if self.broadcaster is None:
                    continue
                try:
                    await self.broadcaster.publish(snapshot)
                except Exception:
                    logger.exception("Failed to broadcast workday update")

    async def _notify_session_opened(self, snapshot: WorkdaySnapshot) -> None:
        for listener in self.session_listeners:
            try:
                await listener(snapshot)
            except Exception:
                logger.exception("Session-opened listener failed")


def working_seconds(segments: list[SegmentRecord], now: datetime) -> int:
    """Return whole seconds spent in working segments, open ones ending at now."""
    total = 0.0
    for segment in segments:
        if segment.activity is not Activity.WORKING:
            continue
        end = segment.end if segment.end is not None else now
        total += max((end - segment.start).total_seconds(), 0.0)
    return int(total)


def serialize_snapshot(snapshot: WorkdaySnapshot) -> dict[str, object]:
    """Return the wire representation shared by the API and the live channel."""
    session = snapshot.session
    return {
        "start_time": isoformat_utc(session.start) if session else None,
        "end_time": isoformat_utc(session.end) if session else None,
        "segments": [
            {
                "start_time": isoformat_utc(segment.start),
                "end_time": isoformat_utc(segment.end),
                "activity": segment.activity.value,
            }
            for segment in snapshot.segments
        ],
    }
