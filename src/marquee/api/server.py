"""Server-facing relay API: map changes in, rendered messages out."""

from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from marquee.api.deps import RelayDep

router = APIRouter(prefix="/api", tags=["server"])


class MapRequest(BaseModel):
    map_name: str = Field(min_length=1)


class MapResponse(BaseModel):
    map_name: str


class OutboundMessageResponse(BaseModel):
    slot: int
    identity: int
    surface: str
    text: str


class OutboxResponse(BaseModel):
    messages: list[OutboundMessageResponse]
    remaining: int
    dropped: int


@router.put("/server/map", response_model=MapResponse)
async def set_map(body: MapRequest, relay: RelayDep) -> MapResponse:
    relay.set_map_name(body.map_name)
    return MapResponse(map_name=relay.map_name())


@router.get("/outbox", response_model=OutboxResponse)
async def drain_outbox(
    relay: RelayDep, limit: int | None = Query(default=None, ge=1, le=10000)
) -> OutboxResponse:
    """Pop queued render calls for the bridge to print, oldest first."""
    drained = relay.drain(limit)
    return OutboxResponse(
        messages=[
            OutboundMessageResponse(
                slot=m.slot, identity=m.identity, surface=m.surface, text=m.text
            )
            for m in drained
        ],
        remaining=relay.pending,
        dropped=relay.dropped,
    )
