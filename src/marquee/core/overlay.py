"""Timed center overlay: per-slot state advanced once per host tick.

The center HTML surface on CS2 only stays visible while it is re-sent, so an
active overlay is re-rendered on every tick until its duration has elapsed.
Time is counted in ticks: an overlay shows while
``elapsed_ticks / tick_rate < duration``.

States per slot: idle (no record, or ``active`` False) -> showing -> idle on
expiry or disconnect. A new ``set_overlay`` always restarts the clock.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from marquee.models.participant import Participant

logger = logging.getLogger(__name__)

RenderOverlay = Callable[[Participant, str], None]


@dataclass
class OverlayState:
    """What one slot is currently showing."""

    active: bool = False
    text: str = ""
    elapsed_ticks: int = 0

    def elapsed_seconds(self, tick_rate: int) -> float:
        return self.elapsed_ticks / tick_rate


class OverlayStateMachine:
    """Owns the overlay state of every live slot.

    ``duration`` and ``show_when_dead`` come from the current configuration
    generation and are swapped on reload via ``configure``; states already
    showing keep their elapsed ticks.
    """

    def __init__(
        self,
        render: RenderOverlay,
        tick_rate: int,
        duration: float = 0.0,
        show_when_dead: bool = False,
    ) -> None:
        self._render = render
        self._tick_rate = tick_rate
        self._duration = duration
        self._show_when_dead = show_when_dead
        self._states: dict[int, OverlayState] = {}

    def configure(self, duration: float, show_when_dead: bool) -> None:
        self._duration = duration
        self._show_when_dead = show_when_dead

    @property
    def active_count(self) -> int:
        return sum(1 for state in self._states.values() if state.active)

    def get(self, slot: int) -> OverlayState | None:
        return self._states.get(slot)

    def set_overlay(self, slot: int, text: str) -> OverlayState:
        """Start (or restart) showing ``text`` on ``slot``."""
        state = self._states.get(slot)
        if state is None:
            state = OverlayState()
            self._states[slot] = state
        state.active = True
        state.text = text
        state.elapsed_ticks = 0
        return state

    def tick(self, participant: Participant) -> None:
        """Advance one tick for ``participant``'s slot."""
        state = self._states.get(participant.slot)
        if state is None or not state.active:
            return

        if not self._show_when_dead and not participant.is_alive:
            # Paused, not expired: the clock resumes when they respawn.
            return

        if state.elapsed_seconds(self._tick_rate) < self._duration:
            self._render(participant, state.text)
            state.elapsed_ticks += 1
        else:
            state.active = False
            logger.debug("overlay_expired slot=%d ticks=%d", participant.slot, state.elapsed_ticks)

    def discard(self, slot: int) -> None:
        self._states.pop(slot, None)

    def clear(self) -> None:
        self._states.clear()
