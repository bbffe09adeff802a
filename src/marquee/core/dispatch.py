"""Delivery of resolved text to participants.

Two modes:

- **broadcast**: every eligible participant gets the template resolved with
  their own locale, so one firing can produce different text per player.
- **welcome**: a single participant, one-shot, after the configured delay.
  If the participant is gone by then the send is dropped without fuss.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from marquee.core.host import Host
from marquee.core.locale import LocaleCache
from marquee.core.overlay import OverlayStateMachine
from marquee.core.templating import PlaceholderContext, resolve
from marquee.core.timers import TimerHandle, TimerService
from marquee.models.advert import CENTER, CHAT, ConfigGeneration, MessageType, WelcomeMessage
from marquee.models.participant import Participant

logger = logging.getLogger(__name__)


class Dispatcher:
    """Resolves templates per participant and writes them to the host surfaces."""

    def __init__(
        self,
        host: Host,
        timers: TimerService,
        locales: LocaleCache,
        overlays: OverlayStateMachine,
        generation: Callable[[], ConfigGeneration],
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._host = host
        self._timers = timers
        self._locales = locales
        self._overlays = overlays
        self._generation = generation
        self._clock = clock
        self._pending: dict[int, TimerHandle] = {}

    @property
    def pending_welcomes(self) -> int:
        return len(self._pending)

    def build_context(
        self, generation: ConfigGeneration, player_name: str | None = None
    ) -> PlaceholderContext:
        config = generation.config
        participants = self._host.participants()
        return PlaceholderContext(
            server_name=config.effective_server_name,
            server_subname=config.effective_server_subname,
            map_name=self._host.map_name(),
            ip_address=generation.ip_override or self._host.ip_address(),
            port=self._host.port(),
            max_participants=self._host.max_participants(),
            participant_count=sum(1 for p in participants if p.is_valid),
            now=self._clock(),
            player_name=player_name,
            map_display_names=config.maps_name or {},
        )

    def render(
        self,
        template: str,
        participant: Participant,
        generation: ConfigGeneration,
        ctx: PlaceholderContext,
    ) -> str:
        config = generation.config
        return resolve(
            template,
            self._locales.lookup(participant.identity),
            ctx,
            table=config.language_messages,
            default_locale=config.default_lang,
        )

    # -- broadcast ---------------------------------------------------------

    def broadcast(self, destination: str, template: str) -> int:
        """Send one ad line to every eligible participant. Returns how many were sent."""
        generation = self._generation()
        ctx = self.build_context(generation)
        sent = 0
        for participant in self._host.participants():
            if not participant.is_eligible:
                continue
            text = self.render(template, participant, generation, ctx)
            if destination == CHAT:
                # Leading space keeps a color code at the very start from being eaten.
                self._host.send_chat_line(participant, f" {text}")
            elif destination == CENTER:
                if generation.config.print_to_center_html:
                    self._overlays.set_overlay(participant.slot, text)
                else:
                    self._host.send_center_text(participant, text)
            else:
                continue
            sent += 1
        return sent

    # -- welcome -----------------------------------------------------------

    def schedule_welcome(self, participant: Participant) -> TimerHandle | None:
        """Arm the one-shot welcome for a freshly connected participant."""
        welcome = self._generation().config.welcome_message
        if welcome is None or participant.is_bot or not participant.is_valid:
            return None

        identity = participant.identity
        handle: TimerHandle | None = None

        def _fire() -> None:
            if handle is not None:
                self._pending.pop(handle.handle_id, None)
            self.deliver_welcome(identity, welcome)

        handle = self._timers.arm_one_shot(welcome.display_delay, _fire)
        self._pending[handle.handle_id] = handle
        return handle

    def deliver_welcome(self, identity: int, welcome: WelcomeMessage) -> bool:
        """Resolve and send the welcome now. Returns False if the participant is gone."""
        participant = self._host.find_participant(identity)
        if participant is None or not participant.is_valid:
            logger.debug("welcome_skipped identity=%d reason=gone", identity)
            return False

        generation = self._generation()
        ctx = self.build_context(generation, player_name=participant.name)
        text = self.render(welcome.message, participant, generation, ctx)

        if welcome.message_type is MessageType.CHAT:
            self._host.send_chat_line(participant, text)
        elif welcome.message_type is MessageType.CENTER:
            self._host.send_center_text(participant, text)
        else:
            self._overlays.set_overlay(participant.slot, text)
        return True

    def cancel_pending(self) -> None:
        for handle in self._pending.values():
            self._timers.cancel(handle)
        self._pending.clear()
