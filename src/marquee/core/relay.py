"""RelayHost: an in-process Host fed by a game-server bridge over HTTP.

The bridge reports lifecycle events (authorize, connect, disconnect,
alive/dead, map changes) and polls the outbox for rendered text to print.
Overlay text is re-queued on every tick while active, exactly as the game
surface expects, so bridges should drain frequently.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass

from marquee.models.participant import Participant

logger = logging.getLogger(__name__)

SURFACE_CHAT = "chat"
SURFACE_CENTER = "center"
SURFACE_OVERLAY = "center_html"


@dataclass(frozen=True)
class OutboundMessage:
    """One render call waiting for the bridge to pick it up."""

    slot: int
    identity: int
    surface: str
    text: str


class RelayHost:
    """Host implementation backed by an in-memory roster and outbox."""

    def __init__(
        self,
        map_name: str = "",
        ip_address: str = "127.0.0.1",
        port: int = 27015,
        max_participants: int = 64,
        outbox_size: int = 2048,
    ) -> None:
        self._map_name = map_name
        self._ip_address = ip_address
        self._port = port
        self._max_participants = max_participants
        # slot -> participant; insertion order is the broadcast order.
        self._roster: dict[int, Participant] = {}
        self._outbox: deque[OutboundMessage] = deque(maxlen=outbox_size)
        self.dropped = 0

    # -- roster ------------------------------------------------------------

    def add(self, participant: Participant) -> None:
        self._roster[participant.slot] = participant

    def remove(self, slot: int) -> Participant | None:
        participant = self._roster.pop(slot, None)
        if participant is not None:
            participant.is_valid = False
        return participant

    def get(self, slot: int) -> Participant | None:
        return self._roster.get(slot)

    def set_map_name(self, map_name: str) -> None:
        self._map_name = map_name

    # -- Host protocol -----------------------------------------------------

    def participants(self) -> Sequence[Participant]:
        return list(self._roster.values())

    def find_participant(self, identity: int) -> Participant | None:
        for participant in self._roster.values():
            if participant.identity == identity:
                return participant
        return None

    def map_name(self) -> str:
        return self._map_name

    def ip_address(self) -> str:
        return self._ip_address

    def port(self) -> int:
        return self._port

    def max_participants(self) -> int:
        return self._max_participants

    def send_chat_line(self, participant: Participant, text: str) -> None:
        self._enqueue(participant, SURFACE_CHAT, text)

    def send_center_text(self, participant: Participant, text: str) -> None:
        self._enqueue(participant, SURFACE_CENTER, text)

    def send_center_overlay(self, participant: Participant, text: str) -> None:
        self._enqueue(participant, SURFACE_OVERLAY, text)

    # -- outbox ------------------------------------------------------------

    def _enqueue(self, participant: Participant, surface: str, text: str) -> None:
        if len(self._outbox) == self._outbox.maxlen:
            self.dropped += 1
            if self.dropped == 1 or self.dropped % 1000 == 0:
                logger.warning("relay_outbox_full dropped=%d", self.dropped)
        self._outbox.append(OutboundMessage(participant.slot, participant.identity, surface, text))

    @property
    def pending(self) -> int:
        return len(self._outbox)

    def drain(self, limit: int | None = None) -> list[OutboundMessage]:
        """Pop up to ``limit`` queued messages, oldest first."""
        count = len(self._outbox) if limit is None else min(limit, len(self._outbox))
        return [self._outbox.popleft() for _ in range(count)]
