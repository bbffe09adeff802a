"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import pytest

from marquee.config import Settings
from marquee.core.timers import TimerCallback, TimerHandle
from marquee.models.participant import Participant

FIXED_NOW = datetime(2024, 3, 9, 14, 5, 7)


class ManualTimers:
    """TimerService driven by an explicit clock instead of the event loop."""

    def __init__(self) -> None:
        self.now = 0.0
        self._due: dict[int, tuple[TimerHandle, float]] = {}

    def arm_repeating(self, interval: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle(interval=interval, repeat=True, callback=callback)
        self._due[handle.handle_id] = (handle, self.now + interval)
        return handle

    def arm_one_shot(self, delay: float, callback: TimerCallback) -> TimerHandle:
        handle = TimerHandle(interval=delay, repeat=False, callback=callback)
        self._due[handle.handle_id] = (handle, self.now + delay)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True
        self._due.pop(handle.handle_id, None)

    @property
    def armed(self) -> list[TimerHandle]:
        return [handle for handle, _ in self._due.values()]

    @property
    def repeating(self) -> list[TimerHandle]:
        return [handle for handle in self.armed if handle.repeat]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing everything that falls due in order."""
        target = self.now + seconds
        while True:
            due = [(when, handle) for handle, when in self._due.values() if when <= target]
            if not due:
                break
            when, handle = min(due, key=lambda item: (item[0], item[1].handle_id))
            self.now = when
            if handle.repeat:
                self._due[handle.handle_id] = (handle, when + handle.interval)
            else:
                self._due.pop(handle.handle_id, None)
            handle.fire()
        self.now = target


class FakeHost:
    """Host that records every render call."""

    def __init__(self, map_name: str = "de_dust2") -> None:
        self.roster: list[Participant] = []
        self.sent: list[tuple[str, int, str]] = []
        self.current_map = map_name

    def add(self, participant: Participant) -> Participant:
        self.roster.append(participant)
        return participant

    def remove(self, participant: Participant) -> None:
        participant.is_valid = False
        self.roster.remove(participant)

    def participants(self) -> Sequence[Participant]:
        return list(self.roster)

    def find_participant(self, identity: int) -> Participant | None:
        return next((p for p in self.roster if p.identity == identity), None)

    def map_name(self) -> str:
        return self.current_map

    def ip_address(self) -> str:
        return "10.0.0.5"

    def port(self) -> int:
        return 27015

    def max_participants(self) -> int:
        return 32

    def send_chat_line(self, participant: Participant, text: str) -> None:
        self.sent.append(("chat", participant.slot, text))

    def send_center_text(self, participant: Participant, text: str) -> None:
        self.sent.append(("center", participant.slot, text))

    def send_center_overlay(self, participant: Participant, text: str) -> None:
        self.sent.append(("overlay", participant.slot, text))

    def sent_to(self, slot: int, surface: str | None = None) -> list[str]:
        return [
            text for kind, s, text in self.sent if s == slot and (surface is None or kind == surface)
        ]


class StaticResolver:
    """CountryResolver backed by a dict; records lookups."""

    def __init__(self, table: dict[str, str] | None = None) -> None:
        self.table = table or {}
        self.lookups: list[str] = []

    def resolve_country(self, ip: str) -> str | None:
        self.lookups.append(ip)
        return self.table.get(ip)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings pointing at a throwaway config document."""
    return Settings(
        marquee_env="development",
        marquee_config_path=str(tmp_path / "marquee.json"),
        marquee_geoip_db_path=str(tmp_path / "missing.mmdb"),
        marquee_auto_start=False,
    )


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def resolver() -> StaticResolver:
    return StaticResolver({"81.2.69.142": "GB", "95.173.136.70": "RU", "8.8.8.8": "US"})
