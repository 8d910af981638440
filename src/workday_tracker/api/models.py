"""Pydantic models for the workday and notifier endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class WorkdayActionRequest(BaseModel):
    """Body of POST /api/workday."""

    action: Literal["toggle", "pause"]
    timestamp: datetime | None = None


class SegmentResponse(BaseModel):
    """A segment as sent to clients."""

    start_time: str | None
    end_time: str | None
    activity: Literal["working", "on break"]


class WorkdayResponse(BaseModel):
    """The workday snapshot as sent to clients."""

    start_time: str | None = None
    end_time: str | None = None
    segments: list[SegmentResponse] = Field(default_factory=list)


class SubscriptionKeys(BaseModel):
    """Browser push subscription keys."""

    auth: str = Field(min_length=1)
    p256dh: str = Field(min_length=1)


class PushSubscription(BaseModel):
    """A full browser push subscription."""

    endpoint: str = Field(min_length=1)
    # Browsers send epoch milliseconds as a JS number, which may be fractional.
    expiration_time: float | None = Field(default=None, alias="expirationTime")
    keys: SubscriptionKeys


class SubscriptionReference(BaseModel):
    """Identifies a subscription by its endpoint."""

    endpoint: str = Field(min_length=1)


class SubscribeRequest(BaseModel):
    """Body of POST /api/notifier."""

    subscription: PushSubscription
    interval: int = Field(gt=0)


class UpdateIntervalRequest(BaseModel):
    """Body of PATCH /api/notifier."""

    subscription: SubscriptionReference
    interval: int = Field(gt=0)


class UnsubscribeRequest(BaseModel):
    """Body of DELETE /api/notifier."""

    subscription: SubscriptionReference
