"""Round-robin ad rotation: one repeating timer per ad group.

Each group cycles through its message sets in order. The cursor for a group
only ever grows; the set shown is ``messages[cursor % len(messages)]``. The
cursors belong to the running scheduler, not to the (immutable) config, and
start again from zero whenever a new generation is armed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence

from marquee.core.timers import TimerHandle, TimerService
from marquee.models.advert import DESTINATIONS, Advertisement

logger = logging.getLogger(__name__)

# (destination kind, raw template) -> None
DeliverMessage = Callable[[str, str], None]


class RotationScheduler:
    """Arms ad group timers and advances their cursors on each firing."""

    def __init__(self, timers: TimerService, deliver: DeliverMessage) -> None:
        self._timers = timers
        self._deliver = deliver
        self._groups: list[Advertisement] = []
        self._cursors: list[int] = []
        self._handles: list[TimerHandle] = []

    @property
    def armed_count(self) -> int:
        return len(self._handles)

    def cursor(self, group_index: int) -> int:
        return self._cursors[group_index]

    def start(self, groups: Sequence[Advertisement]) -> None:
        """Arm one repeating timer per group. Any previous generation is stopped first."""
        self.stop()
        self._groups = list(groups)
        self._cursors = [0] * len(self._groups)
        for index, group in enumerate(self._groups):
            handle = self._timers.arm_repeating(
                group.interval, lambda index=index: self.fire(index)
            )
            self._handles.append(handle)
        logger.info("rotation_started groups=%d", len(self._groups))

    def stop(self) -> None:
        """Cancel every armed timer. Safe to call repeatedly."""
        if not self._handles:
            return
        for handle in self._handles:
            self._timers.cancel(handle)
        logger.info("rotation_stopped timers=%d", len(self._handles))
        self._handles = []

    def next_message_set(self, group_index: int) -> Mapping[str, str]:
        """Return the set due for ``group_index`` and advance its cursor."""
        group = self._groups[group_index]
        selected = group.messages[self._cursors[group_index] % len(group.messages)]
        self._cursors[group_index] += 1
        return selected

    def fire(self, group_index: int) -> None:
        """Timer callback: deliver the next message set of one group."""
        if group_index >= len(self._groups):
            return
        for destination, template in self.next_message_set(group_index).items():
            if destination not in DESTINATIONS:
                logger.debug("rotation_unknown_destination destination=%s", destination)
                continue
            self._deliver(destination, template)
