"""Supabase-backed session and segment repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from workday_tracker.domain.errors import StoreIntegrityError
from workday_tracker.domain.workday import Activity, SegmentRecord, SessionRecord
from workday_tracker.services.workday import WorkdayRepository
from workday_tracker.timeutils import isoformat_utc, parse_timestamp

_SESSION_COLUMNS = "id, start, end"
_SEGMENT_COLUMNS = "id, session_id, start, end, activity"


@dataclass
class SupabaseWorkdayRepository(WorkdayRepository):
    """Supabase implementation for the sessions and segments tables."""

    client: Client

    def create_session(self, start: datetime) -> int:
        """Insert an open session row and return its id."""
        response = (
            self.client.table("sessions")
            .insert({"start": isoformat_utc(start), "end": None})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create session")
        return int(response.data[0]["id"])

    def close_session(self, session_id: int, end: datetime) -> None:
        """Set a session's end."""
        self.client.table("sessions").update({"end": isoformat_utc(end)}).eq(
            "id", session_id
        ).execute()

    def create_segment(
        self,
        session_id: int,
        start: datetime,
        end: datetime | None,
        activity: Activity,
    ) -> int:
        """Insert a segment row and return its id."""
        response = (
            self.client.table("segments")
            .insert(
                {
                    "session_id": session_id,
                    "start": isoformat_utc(start),
                    "end": isoformat_utc(end),
                    "activity": activity.value,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create segment")
        return int(response.data[0]["id"])

    def close_segment(self, segment_id: int, end: datetime) -> None:
        """Set a segment's end."""
        self.client.table("segments").update({"end": isoformat_utc(end)}).eq(
            "id", segment_id
        ).execute()

    def get_open_session(self) -> SessionRecord | None:
        """Return the single open session, if any."""
        response = (
            self.client.table("sessions")
            .select(_SESSION_COLUMNS)
            .is_("end", "null")
            .execute()
        )
        rows = response.data or []
        if len(rows) > 1:
            raise StoreIntegrityError(
                f"Sessions table has {len(rows)} open sessions; expected at most one."
            )
        return _session_from_row(rows[0]) if rows else None

    def get_open_segment(self, session_id: int) -> SegmentRecord | None:
        """Return the open segment of a session, if any."""
        response = (
            self.client.table("segments")
            .select(_SEGMENT_COLUMNS)
            .eq("session_id", session_id)
            .is_("end", "null")
            .execute()
        )
        rows = response.data or []
        if len(rows) > 1:
            raise StoreIntegrityError(
                f"Session {session_id} has {len(rows)} open segments; expected one."
            )
        return _segment_from_row(rows[0]) if rows else None

    def get_segments_for_session(self, session_id: int) -> list[SegmentRecord]:
        """Return a session's segments ordered by start."""
        response = (
            self.client.table("segments")
            .select(_SEGMENT_COLUMNS)
            .eq("session_id", session_id)
            .order("start")
            .execute()
        )
        return [_segment_from_row(row) for row in response.data or []]

    def get_last_closed_session(self) -> SessionRecord | None:
        """Return the session with the latest end."""
        response = (
            self.client.table("sessions")
            .select(_SESSION_COLUMNS)
            .not_.is_("end", "null")
            .order("end", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _session_from_row(response.data[0])


def _session_from_row(row: dict[str, object]) -> SessionRecord:
    return SessionRecord(
        id=int(row["id"]),
        start=parse_timestamp(str(row["start"])),
        end=_optional_timestamp(row.get("end")),
    )


def _segment_from_row(row: dict[str, object]) -> SegmentRecord:
    try:
        activity = Activity(row["activity"])
    except ValueError as exc:
        raise StoreIntegrityError(
            f"Segment {row['id']} has unknown activity {row['activity']!r}."
        ) from exc
    return SegmentRecord(
        id=int(row["id"]),
        session_id=int(row["session_id"]),
        start=parse_timestamp(str(row["start"])),
        end=_optional_timestamp(row.get("end")),
        activity=activity,
    )


def _optional_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return parse_timestamp(value)
    return None
