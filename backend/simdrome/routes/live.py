"""Live mode control: /api/live/start, /stop, /restart, /state, /filters, /objects."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from simdrome.errors import SessionStateError
from simdrome.models import (
    FilterUpdate,
    SessionParams,
    SessionStateView,
    TrackedObjectView,
    VisibilityCounts,
)
from simdrome.session import StreamSessionController, get_controller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/live")


@router.post("/start", response_model=SessionStateView)
async def start_session(
    params: SessionParams,
    controller: StreamSessionController = Depends(get_controller),
):
    try:
        await controller.start(params)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return controller.snapshot()


@router.post("/restart", response_model=SessionStateView)
async def restart_session(
    params: SessionParams,
    controller: StreamSessionController = Depends(get_controller),
):
    try:
        await controller.restart(params)
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return controller.snapshot()


@router.post("/stop", response_model=SessionStateView)
async def stop_session(controller: StreamSessionController = Depends(get_controller)):
    try:
        await controller.stop()
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return controller.snapshot()


@router.get("/state", response_model=SessionStateView)
async def session_state(controller: StreamSessionController = Depends(get_controller)):
    return controller.snapshot()


@router.put("/filters", response_model=VisibilityCounts)
async def update_filters(
    update: FilterUpdate,
    controller: StreamSessionController = Depends(get_controller),
):
    return controller.update_filters(criteria=update.criteria, capacity=update.capacity)


@router.get("/objects", response_model=list[TrackedObjectView])
async def list_objects(
    include_hidden: bool = False,
    controller: StreamSessionController = Depends(get_controller),
):
    return controller.objects(include_hidden=include_hidden)
