"""Participant: a connected player as the host reports it."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Participant:
    """A player occupying a connection slot.

    ``identity`` is the stable account id (SteamID64 on CS2 hosts) and is what
    the locale cache is keyed on. ``slot`` is the small connection index the
    overlay state is keyed on; slots are reused after a disconnect.
    """

    slot: int
    identity: int
    name: str
    ip_address: str | None = None
    is_bot: bool = False
    is_valid: bool = True
    is_alive: bool = True

    @property
    def is_eligible(self) -> bool:
        """Real, valid players receive broadcasts; bots and stale entries don't."""
        return self.is_valid and not self.is_bot
