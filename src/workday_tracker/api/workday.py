"""Workday endpoints and the live update channel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import (
    APIRouter,
    HTTPException,
    Request,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from workday_tracker.api.models import WorkdayActionRequest, WorkdayResponse
from workday_tracker.domain.errors import (
    NoOpenSessionError,
    StoreIntegrityError,
    TimestampOrderError,
    WorkdayContractError,
)
from workday_tracker.services.broadcast import workday_event
from workday_tracker.services.workday import serialize_snapshot

if TYPE_CHECKING:
    from workday_tracker.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["workday"])


@router.get("/workday", response_model=WorkdayResponse)
async def get_workday(request: Request) -> dict[str, object]:
    """Return the open session, or the last closed one."""
    container: AppContainer = request.app.state.container
    try:
        snapshot = container.workday_service.get_current_snapshot()
    except StoreIntegrityError as exc:
        logger.exception("Workday store integrity violation")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "store_integrity", "message": str(exc)},
        ) from exc
    return serialize_snapshot(snapshot)


@router.post("/workday", response_model=WorkdayResponse)
async def update_workday(
    body: WorkdayActionRequest, request: Request
) -> dict[str, object]:
    """Apply a toggle or pause action and return the new snapshot."""
    container: AppContainer = request.app.state.container
    service = container.workday_service
    try:
        if body.action == "toggle":
            snapshot = await service.toggle(body.timestamp)
        else:
            snapshot = await service.pause(body.timestamp)
    except NoOpenSessionError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "no_open_session", "message": str(exc)},
        ) from exc
    except TimestampOrderError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "timestamp_out_of_order", "message": str(exc)},
        ) from exc
    except (StoreIntegrityError, WorkdayContractError) as exc:
        logger.exception("Workday invariant violated", extra={"action": body.action})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "workday_invariant", "message": str(exc)},
        ) from exc
    return serialize_snapshot(snapshot)


@router.websocket("/workday/live")
async def workday_live(websocket: WebSocket) -> None:
    """Stream workday updates to a connected viewer."""
    container: AppContainer = websocket.app.state.container
    hub = container.broadcast_hub
    await hub.connect(websocket)
    try:
        snapshot = container.workday_service.get_current_snapshot()
        await websocket.send_json(workday_event(snapshot))
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Viewer closed the live channel")
    except StoreIntegrityError:
        logger.exception("Workday store integrity violation on the live channel")
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    finally:
        await hub.disconnect(websocket)
