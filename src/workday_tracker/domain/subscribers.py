"""Domain models for push notification subscribers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SubscriberRecord:
    """A registered browser push subscription and its reminder schedule."""

    endpoint: str
    auth: str
    p256dh: str
    interval: int
    target_notification_time: int
    expiration_time: int | None = None
    id: int | None = None

    def subscription_info(self) -> dict[str, object]:
        """Return the subscription in the shape push libraries expect."""
        return {
            "endpoint": self.endpoint,
            "expirationTime": self.expiration_time,
            "keys": {"auth": self.auth, "p256dh": self.p256dh},
        }
