"""Web Push delivery adapter."""

import asyncio
from dataclasses import dataclass

from pywebpush import WebPushException, webpush

from workday_tracker.config import Settings
from workday_tracker.domain.errors import (
    PushNotConfiguredError,
    SubscriptionGoneError,
)
from workday_tracker.domain.subscribers import SubscriberRecord
from workday_tracker.services.notifier import PushTransport

_GONE_STATUS_CODES = {404, 410}


@dataclass
class WebPushClient(PushTransport):
    """Push transport backed by pywebpush with VAPID authentication."""

    vapid_private_key: str
    vapid_subject: str
    ttl_seconds: int = 60 * 60
    timeout_seconds: float = 10

    @classmethod
    def create(cls, settings: Settings) -> "WebPushClient":
        """Create a client from application settings."""
        if not settings.push_configured:
            raise PushNotConfiguredError("VAPID credentials are missing.")
        return cls(
            vapid_private_key=str(settings.vapid_private_key),
            vapid_subject=str(settings.vapid_subject),
            ttl_seconds=settings.push_ttl_seconds,
            timeout_seconds=settings.push_timeout_seconds,
        )

    async def send(self, subscriber: SubscriberRecord, message: str) -> None:
        """Encrypt and send a message to the subscriber's push endpoint."""
        try:
            await asyncio.to_thread(
                webpush,
                subscription_info=subscriber.subscription_info(),
                data=message,
                vapid_private_key=self.vapid_private_key,
                vapid_claims={"sub": self.vapid_subject},
                ttl=self.ttl_seconds,
                timeout=self.timeout_seconds,
            )
        except WebPushException as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            if status_code in _GONE_STATUS_CODES:
                raise SubscriptionGoneError(
                    f"Push endpoint returned {status_code}"
                ) from exc
            raise
