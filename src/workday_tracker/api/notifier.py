"""Push reminder subscription endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from workday_tracker.api.models import (
    SubscribeRequest,
    UnsubscribeRequest,
    UpdateIntervalRequest,
)
from workday_tracker.domain.errors import SubscriberNotFoundError

if TYPE_CHECKING:
    from workday_tracker.containers import AppContainer

router = APIRouter(prefix="/api/notifier", tags=["notifier"])


async def require_push_configured(request: Request) -> None:
    """Reject notifier requests when push credentials are missing."""
    container: AppContainer = request.app.state.container
    if not container.notifier_service.configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "code": "push_not_configured",
                "message": "Push notifications are not configured on this server.",
            },
        )


@router.get("/public-key", dependencies=[Depends(require_push_configured)])
async def public_key(request: Request) -> dict[str, str]:
    """Return the VAPID public key clients subscribe with."""
    container: AppContainer = request.app.state.container
    return {"public_key": str(container.settings.vapid_public_key)}


@router.post(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_push_configured)],
)
async def subscribe(body: SubscribeRequest, request: Request) -> Response:
    """Register a browser for reminders."""
    container: AppContainer = request.app.state.container
    subscription = body.subscription
    container.notifier_service.subscribe(
        endpoint=subscription.endpoint,
        auth=subscription.keys.auth,
        p256dh=subscription.keys.p256dh,
        interval=body.interval,
        expiration_time=(
            int(subscription.expiration_time)
            if subscription.expiration_time is not None
            else None
        ),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_push_configured)],
)
async def update_interval(body: UpdateIntervalRequest, request: Request) -> Response:
    """Change a subscriber's reminder interval."""
    container: AppContainer = request.app.state.container
    try:
        container.notifier_service.update_interval(
            body.subscription.endpoint, body.interval
        )
    except SubscriberNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "subscriber_not_found", "message": str(exc)},
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_push_configured)],
)
async def unsubscribe(body: UnsubscribeRequest, request: Request) -> Response:
    """Stop reminders for a browser."""
    container: AppContainer = request.app.state.container
    container.notifier_service.unsubscribe(body.subscription.endpoint)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
