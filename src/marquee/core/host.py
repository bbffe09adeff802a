"""Host contract: the game-server side the engine talks to.

The engine never reaches into a game server directly. Everything it needs
(who is connected, what map is loaded, how to put text on a screen) comes
through this protocol. ``marquee.core.relay.RelayHost`` is the in-process
implementation used by the HTTP service; tests use a recording fake.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from marquee.models.participant import Participant


class Host(Protocol):
    """Roster, server facts, and rendering surfaces."""

    def participants(self) -> Sequence[Participant]:
        """Connected participants in a stable order."""
        ...

    def find_participant(self, identity: int) -> Participant | None: ...

    def map_name(self) -> str: ...

    def ip_address(self) -> str: ...

    def port(self) -> int: ...

    def max_participants(self) -> int: ...

    def send_chat_line(self, participant: Participant, text: str) -> None: ...

    def send_center_text(self, participant: Participant, text: str) -> None: ...

    def send_center_overlay(self, participant: Participant, text: str) -> None: ...
