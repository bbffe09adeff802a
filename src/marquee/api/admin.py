"""Admin API: manual config reload and engine status."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from marquee.api.deps import AdminDep, EngineDep
from marquee.core.store import ConfigDocumentError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class StatusResponse(BaseModel):
    """Snapshot of the running engine."""

    running: bool
    generation: int
    armed_timers: int
    pending_welcomes: int
    tracked_locales: int
    active_overlays: int


class ReloadResponse(BaseModel):
    status: str
    generation: int
    groups: int
    version: int


@router.get("/status", response_model=StatusResponse)
async def engine_status(engine: EngineDep, _: AdminDep) -> StatusResponse:
    return StatusResponse(**engine.status())


@router.post("/reload", response_model=ReloadResponse)
async def reload_config(engine: EngineDep, _: AdminDep) -> ReloadResponse:
    """Re-read the advert document and swap it in.

    A broken document returns 422 and the running generation stays live.
    """
    try:
        generation = engine.reload(strict=True)
    except ConfigDocumentError as exc:
        logger.warning("admin_reload_rejected error=%s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    logger.info("admin_reload generation=%d", generation.number)
    return ReloadResponse(
        status="reloaded",
        generation=generation.number,
        groups=len(generation.config.ads),
        version=generation.config.version,
    )
