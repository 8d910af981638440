"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from workday_tracker.adapters.supabase_subscriber_repository import (
    SupabaseSubscriberRepository,
)
from workday_tracker.adapters.supabase_workday_repository import (
    SupabaseWorkdayRepository,
)
from workday_tracker.adapters.webpush_client import WebPushClient
from workday_tracker.config import Settings
from workday_tracker.services.broadcast import WorkdayBroadcastHub
from workday_tracker.services.notifier import NotifierService
from workday_tracker.services.scheduler import NotificationScheduler
from workday_tracker.services.workday import WorkdayService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    workday_service: WorkdayService
    notifier_service: NotifierService
    broadcast_hub: WorkdayBroadcastHub
    scheduler: NotificationScheduler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    broadcast_hub = WorkdayBroadcastHub()
    workday_service = WorkdayService(
        repository=SupabaseWorkdayRepository(supabase_client),
        broadcaster=broadcast_hub,
        display_timezone=resolved_settings.display_timezone,
    )
    push_client = (
        WebPushClient.create(resolved_settings)
        if resolved_settings.push_configured
        else None
    )
    notifier_service = NotifierService(
        repository=SupabaseSubscriberRepository(supabase_client),
        workday_service=workday_service,
        transport=push_client,
        delivery_timeout_seconds=resolved_settings.push_timeout_seconds,
    )
    workday_service.session_listeners.append(notifier_service.reset_schedules)
    scheduler = NotificationScheduler(
        notifier_service=notifier_service,
        period_seconds=resolved_settings.notification_sweep_seconds,
    )

    async def close_resources() -> None:
        await scheduler.stop()
        await broadcast_hub.close()

    return AppContainer(
        settings=resolved_settings,
        workday_service=workday_service,
        notifier_service=notifier_service,
        broadcast_hub=broadcast_hub,
        scheduler=scheduler,
        close_resources=close_resources,
    )
