"""Participant lifecycle API: the game-server bridge reports host events here."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from marquee.api.deps import EngineDep, RelayDep
from marquee.models.participant import Participant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/participants", tags=["participants"])


class AuthorizeRequest(BaseModel):
    """Client passed authentication; address may still carry the port."""

    slot: int = Field(ge=0)
    identity: int
    address: str | None = None


class ConnectRequest(BaseModel):
    """Client finished loading into the server."""

    slot: int = Field(ge=0)
    identity: int
    name: str
    address: str | None = None
    is_bot: bool = False
    is_alive: bool = True


class DisconnectRequest(BaseModel):
    slot: int = Field(ge=0)


class StateRequest(BaseModel):
    is_alive: bool


class ParticipantResponse(BaseModel):
    slot: int
    identity: int
    name: str
    is_bot: bool
    is_alive: bool
    locale: str | None


def _to_response(participant: Participant, engine: EngineDep) -> ParticipantResponse:
    return ParticipantResponse(
        slot=participant.slot,
        identity=participant.identity,
        name=participant.name,
        is_bot=participant.is_bot,
        is_alive=participant.is_alive,
        locale=engine.locales.lookup(participant.identity),
    )


@router.get("", response_model=list[ParticipantResponse])
async def list_participants(engine: EngineDep, relay: RelayDep) -> list[ParticipantResponse]:
    """Return the connected roster with each participant's resolved locale."""
    return [_to_response(p, engine) for p in relay.participants()]


@router.post("/authorize", status_code=204)
async def authorize(body: AuthorizeRequest, engine: EngineDep) -> None:
    engine.on_participant_authorized(body.slot, body.identity, body.address)


@router.post("/connect", response_model=ParticipantResponse)
async def connect(body: ConnectRequest, engine: EngineDep, relay: RelayDep) -> ParticipantResponse:
    """Register a fully connected participant and schedule their welcome.

    An occupied slot means the bridge missed a disconnect; the previous
    occupant is disconnected first. Its locale entry is kept when the same
    identity is simply reconnecting, since authorize already refreshed it.
    """
    previous = relay.remove(body.slot)
    if previous is not None:
        logger.warning(
            "participant_slot_reused slot=%d previous=%d identity=%d",
            body.slot,
            previous.identity,
            body.identity,
        )
        if previous.identity != body.identity:
            engine.on_participant_disconnected(previous)

    participant = Participant(
        slot=body.slot,
        identity=body.identity,
        name=body.name,
        ip_address=body.address,
        is_bot=body.is_bot,
        is_alive=body.is_alive,
    )
    relay.add(participant)
    engine.on_participant_fully_connected(participant)
    return _to_response(participant, engine)


@router.post("/disconnect", status_code=204)
async def disconnect(body: DisconnectRequest, engine: EngineDep, relay: RelayDep) -> None:
    participant = relay.remove(body.slot)
    if participant is not None:
        engine.on_participant_disconnected(participant)


@router.post("/{slot}/state", response_model=ParticipantResponse)
async def update_state(
    slot: int, body: StateRequest, engine: EngineDep, relay: RelayDep
) -> ParticipantResponse:
    """Report spawn/death so paused overlays behave."""
    participant = relay.get(slot)
    if participant is None:
        raise HTTPException(status_code=404, detail=f"No participant in slot {slot}")
    participant.is_alive = body.is_alive
    return _to_response(participant, engine)
