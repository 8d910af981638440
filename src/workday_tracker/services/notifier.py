"""Push reminder registry and the sweep that delivers due reminders."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from workday_tracker.domain.errors import (
    PushNotConfiguredError,
    SubscriberNotFoundError,
    SubscriptionGoneError,
)
from workday_tracker.domain.subscribers import SubscriberRecord
from workday_tracker.domain.workday import WorkdaySnapshot
from workday_tracker.services.workday import WorkdayService

logger = logging.getLogger(__name__)


class SubscriberRepository(Protocol):
    """Persistence interface for push subscribers."""

    def upsert_subscriber(self, subscriber: SubscriberRecord) -> SubscriberRecord:
        """Insert a subscriber, replacing any row with the same endpoint."""

    def update_interval(self, endpoint: str, interval: int, target: int) -> bool:
        """Update interval and target; return false when no row matched."""

    def update_target_time(
        self,
        endpoint: str,
        target: int,
        expected_target: int | None = None,
        expected_interval: int | None = None,
    ) -> bool:
        """Set the next notification target for a subscriber.

        When expected values are given the row is only updated if it still
        holds them; return false when no row matched.
        """

    def delete_by_endpoint(self, endpoint: str) -> bool:
        """Delete a subscriber; return false when no row matched."""

    def list_due(self, working_seconds: int) -> list[SubscriberRecord]:
        """Return subscribers whose target is at or below the working time."""

    def list_subscribers(self) -> list[SubscriberRecord]:
        """Return every subscriber."""


class PushTransport(Protocol):
    """Delivers an encrypted push message to one subscriber."""

    async def send(self, subscriber: SubscriberRecord, message: str) -> None:
        """Send a message; raise SubscriptionGoneError for dead endpoints."""


@dataclass(frozen=True)
class SweepResult:
    """Outcome counts of a single sweep."""

    working_seconds: int
    sent: int = 0
    failed: int = 0
    removed: int = 0


@dataclass
class NotifierService:
    """Keeps subscriber schedules aligned with elapsed working time."""

    repository: SubscriberRepository
    workday_service: WorkdayService
    transport: PushTransport | None = None
    delivery_timeout_seconds: float = 10
    _sweep_lock: asyncio.Lock = field(
        default_factory=asyncio.Lock, init=False, repr=False
    )

    @property
    def configured(self) -> bool:
        return self.transport is not None

    def require_configured(self) -> PushTransport:
        """Return the transport or fail when push credentials are missing."""
        if self.transport is None:
            raise PushNotConfiguredError("Push notifications are not configured.")
        return self.transport

    def subscribe(  # noqa: PLR0913
        self,
        endpoint: str,
        auth: str,
        p256dh: str,
        interval: int,
        expiration_time: int | None = None,
    ) -> SubscriberRecord:
        """Register a subscriber scheduled on the next interval boundary."""
        self.require_configured()
        current = self.workday_service.get_current_working_seconds()
        subscriber = self.repository.upsert_subscriber(
            SubscriberRecord(
                endpoint=endpoint,
                auth=auth,
                p256dh=p256dh,
                interval=interval,
                target_notification_time=get_next_notification_time(
                    interval, current
                ),
                expiration_time=expiration_time,
            )
        )
        logger.info(
            "Registered push subscriber",
            extra={
                "interval": interval,
                "target": subscriber.target_notification_time,
            },
        )
        return subscriber

    def update_interval(self, endpoint: str, interval: int) -> int:
        """Change a subscriber's interval and return its recomputed target."""
        self.require_configured()
        current = self.workday_service.get_current_working_seconds()
        target = get_next_notification_time(interval, current)
        if not self.repository.update_interval(endpoint, interval, target):
            raise SubscriberNotFoundError("No subscriber matches that endpoint.")
        return target

    def unsubscribe(self, endpoint: str) -> None:
        """Remove a subscriber; unknown endpoints only log a warning."""
        self.require_configured()
        if not self.repository.delete_by_endpoint(endpoint):
            logger.warning("Unsubscribe did not find a subscriber with that endpoint")

    async def reset_schedules(self, snapshot: WorkdaySnapshot | None = None) -> None:
        """Realign subscribers after a new session opens.

        Registered as a session-opened listener so reminders of a new session
        count from that session's start rather than the previous one's.
        """
        self.reset_target_times(self.workday_service.get_current_working_seconds())

    def reset_target_times(self, current_working_seconds: int) -> None:
        """Recompute every subscriber's target from the given working time."""
        subscribers = self.repository.list_subscribers()
        for subscriber in subscribers:
            self.repository.update_target_time(
                subscriber.endpoint,
                get_next_notification_time(
                    subscriber.interval, current_working_seconds
                ),
            )
        if subscribers:
            logger.info(
                "Reset %s subscriber targets at %s working seconds",
                len(subscribers),
                current_working_seconds,
            )

    async def sweep(self) -> SweepResult:
        """Deliver reminders to every due subscriber and reschedule them."""
        if self.transport is None:
            logger.warning("Skipping notification sweep: push is not configured")
            return SweepResult(working_seconds=0)
        if self._sweep_lock.locked():
            logger.warning("Skipping notification sweep: previous sweep still running")
            return SweepResult(working_seconds=0)

        async with self._sweep_lock:
            current = self.workday_service.get_current_working_seconds()
            due = self.repository.list_due(current)
            if not due:
                return SweepResult(working_seconds=current)
            message = f"You have been working for {format_elapsed(current)}"
            outcomes = await asyncio.gather(
                *(self._deliver(self.transport, sub, message) for sub in due),
                return_exceptions=True,
            )

        counts = {"sent": 0, "failed": 0, "removed": 0}
        for subscriber, outcome in zip(due, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Rescheduling push subscriber failed",
                    exc_info=outcome,
                    extra={"endpoint": subscriber.endpoint},
                )
                counts["failed"] += 1
            else:
                counts[outcome] += 1
        logger.info(
            "Notification sweep at %s working seconds: %s",
            current,
            counts,
        )
        return SweepResult(working_seconds=current, **counts)

    async def _deliver(
        self, transport: PushTransport, subscriber: SubscriberRecord, message: str
    ) -> str:
        try:
            await asyncio.wait_for(
                transport.send(subscriber, message),
                timeout=self.delivery_timeout_seconds,
            )
        except SubscriptionGoneError:
            logger.warning(
                "Removing push subscriber with a dead endpoint",
                extra={"endpoint": subscriber.endpoint},
            )
            self.repository.delete_by_endpoint(subscriber.endpoint)
            return "removed"
        except Exception:
            logger.exception(
                "Push delivery failed",
                extra={"endpoint": subscriber.endpoint},
            )
            outcome = "failed"
        else:
            outcome = "sent"

        advanced = self.repository.update_target_time(
            subscriber.endpoint,
            subscriber.target_notification_time + subscriber.interval,
            expected_target=subscriber.target_notification_time,
            expected_interval=subscriber.interval,
        )
        if not advanced:
            logger.info(
                "Subscriber schedule changed during delivery; keeping the new one",
                extra={"endpoint": subscriber.endpoint},
            )
        return outcome


def get_next_notification_time(interval: int, current_working_seconds: int) -> int:
    """Return the first interval boundary at or after the current working time.

    The result is never below one interval, so a fresh session does not fire
    at zero seconds.
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    steps = max(1, -(-current_working_seconds // interval))
    return steps * interval


def format_elapsed(seconds: int) -> str:
    """Format seconds as HH:MM:SS; hours keep counting past 23."""
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
