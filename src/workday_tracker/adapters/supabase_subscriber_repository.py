"""Supabase-backed push subscriber registry."""

from dataclasses import dataclass

from supabase import Client

from workday_tracker.domain.subscribers import SubscriberRecord
from workday_tracker.services.notifier import SubscriberRepository

_COLUMNS = (
    "id, endpoint, expiration_time, auth, p256dh, interval, target_notification_time"
)


@dataclass
class SupabaseSubscriberRepository(SubscriberRepository):
    """Supabase implementation for the subscribers table."""

    client: Client

    def upsert_subscriber(self, subscriber: SubscriberRecord) -> SubscriberRecord:
        """Insert a subscriber or replace the row with the same endpoint."""
        response = (
            self.client.table("subscribers")
            .upsert(
                {
                    "endpoint": subscriber.endpoint,
                    "expiration_time": subscriber.expiration_time,
                    "auth": subscriber.auth,
                    "p256dh": subscriber.p256dh,
                    "interval": subscriber.interval,
                    "target_notification_time": subscriber.target_notification_time,
                },
                on_conflict="endpoint",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save subscriber")
        return _subscriber_from_row(response.data[0])

    def update_interval(self, endpoint: str, interval: int, target: int) -> bool:
        """Update interval and target for an endpoint."""
        response = (
            self.client.table("subscribers")
            .update({"interval": interval, "target_notification_time": target})
            .eq("endpoint", endpoint)
            .execute()
        )
        return bool(response.data)

    def update_target_time(
        self,
        endpoint: str,
        target: int,
        expected_target: int | None = None,
        expected_interval: int | None = None,
    ) -> bool:
        """Set the next notification target, optionally only if unchanged."""
        query = (
            self.client.table("subscribers")
            .update({"target_notification_time": target})
            .eq("endpoint", endpoint)
        )
        if expected_target is not None:
            query = query.eq("target_notification_time", expected_target)
        if expected_interval is not None:
            query = query.eq("interval", expected_interval)
        response = query.execute()
        return bool(response.data)

    def delete_by_endpoint(self, endpoint: str) -> bool:
        """Delete the subscriber with the given endpoint."""
        response = (
            self.client.table("subscribers").delete().eq("endpoint", endpoint).execute()
        )
        return bool(response.data)

    def list_due(self, working_seconds: int) -> list[SubscriberRecord]:
        """Return subscribers due at the given working time."""
        response = (
            self.client.table("subscribers")
            .select(_COLUMNS)
            .lte("target_notification_time", working_seconds)
            .execute()
        )
        return [_subscriber_from_row(row) for row in response.data or []]

    def list_subscribers(self) -> list[SubscriberRecord]:
        """Return every subscriber."""
        response = self.client.table("subscribers").select(_COLUMNS).execute()
        return [_subscriber_from_row(row) for row in response.data or []]


def _subscriber_from_row(row: dict[str, object]) -> SubscriberRecord:
    expiration = row.get("expiration_time")
    return SubscriberRecord(
        id=int(row["id"]) if row.get("id") is not None else None,
        endpoint=str(row["endpoint"]),
        auth=str(row["auth"]),
        p256dh=str(row["p256dh"]),
        interval=int(row["interval"]),
        target_notification_time=int(row["target_notification_time"]),
        expiration_time=int(expiration) if expiration is not None else None,
    )
