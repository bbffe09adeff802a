"""AdvertEngine: the object the host drives.

The host calls four callbacks (authorized, fully connected, disconnected,
tick) plus ``start``/``stop``/``reload``. Everything runs on the host's single
callback thread; nothing here locks.

Configuration is held as an immutable ``ConfigGeneration``. ``reload`` builds
a new one, cancels every timer of the old one, swaps the reference, and only
then arms the new timers, so two generations never fire side by side.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from marquee.config import DEFAULT_TICK_RATE, Settings
from marquee.core.dispatch import Dispatcher
from marquee.core.host import Host
from marquee.core.locale import CountryResolver, LocaleCache
from marquee.core.overlay import OverlayStateMachine
from marquee.core.rotation import RotationScheduler
from marquee.core.store import ConfigDocumentError, ConfigStore
from marquee.core.timers import TimerService
from marquee.models.advert import AdvertConfig, ConfigGeneration, make_default_config
from marquee.models.participant import Participant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigOverrides:
    """Process-level values that win over whatever the document says."""

    ip: str = ""
    server_name: str = ""
    server_subname: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> ConfigOverrides:
        return cls(
            ip=settings.marquee_ip_override.strip(),
            server_name=settings.marquee_server_name_override.strip(),
            server_subname=settings.marquee_server_subname_override.strip(),
        )

    def apply(self, config: AdvertConfig) -> AdvertConfig:
        update: dict[str, str] = {}
        if self.server_name:
            update["server_name"] = self.server_name
        if self.server_subname:
            update["server_subname"] = self.server_subname
        return config.model_copy(update=update) if update else config


class AdvertEngine:
    """Ad rotation, welcome messages, and timed overlays for one game server."""

    def __init__(
        self,
        host: Host,
        timers: TimerService,
        store: ConfigStore,
        resolver: CountryResolver,
        tick_rate: int = DEFAULT_TICK_RATE,
        overrides: ConfigOverrides | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._host = host
        self._store = store
        self._overrides = overrides or ConfigOverrides()
        self._generation = ConfigGeneration(config=AdvertConfig(), number=0)
        self._running = False

        self.locales = LocaleCache(resolver)
        self.overlays = OverlayStateMachine(host.send_center_overlay, tick_rate)
        self.dispatcher = Dispatcher(
            host, timers, self.locales, self.overlays, lambda: self._generation, clock=clock
        )
        self.rotation = RotationScheduler(timers, self.dispatcher.broadcast)

    @property
    def generation(self) -> ConfigGeneration:
        return self._generation

    @property
    def config(self) -> AdvertConfig:
        return self._generation.config

    @property
    def is_running(self) -> bool:
        return self._running

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> ConfigGeneration:
        """Load the document and arm the ad timers."""
        generation = self.reload()
        self._running = True
        return generation

    def stop(self) -> None:
        """Cancel every timer the engine owns and forget per-participant state. Idempotent."""
        self.rotation.stop()
        self.dispatcher.cancel_pending()
        self.overlays.clear()
        self.locales.clear()
        self._running = False

    def reload(self, strict: bool = False) -> ConfigGeneration:
        """Re-read the document and replace the running generation.

        With ``strict`` a broken document raises ``ConfigDocumentError`` and
        the running generation is kept. Otherwise the generated default is
        used for this generation and the operator's file is left untouched.
        """
        try:
            config = self._store.load()
        except ConfigDocumentError:
            if strict:
                raise
            logger.exception("config_load_failed path=%s using=default", self._store.path)
            config = make_default_config()

        return self.apply_config(config)

    def apply_config(self, config: AdvertConfig) -> ConfigGeneration:
        """Swap in ``config`` as a new generation and re-arm everything from it."""
        generation = ConfigGeneration(
            config=self._overrides.apply(config),
            number=self._generation.number + 1,
            ip_override=self._overrides.ip,
        )

        self.rotation.stop()
        self._generation = generation
        self.overlays.configure(
            duration=generation.config.html_center_duration,
            show_when_dead=generation.config.show_html_when_dead,
        )
        self.locales.default_locale = generation.config.default_lang
        self.rotation.start(generation.config.ads)
        self._reprime_locales()

        logger.info(
            "config_applied generation=%d groups=%d localized=%s",
            generation.number,
            len(generation.config.ads),
            generation.config.has_localization,
        )
        return generation

    def _reprime_locales(self) -> None:
        if not self.config.has_localization:
            return
        for participant in self._host.participants():
            if participant.ip_address is None or participant.is_bot:
                continue
            self.locales.on_authorize(participant.identity, participant.ip_address)

    # -- host callbacks ----------------------------------------------------

    def on_participant_authorized(
        self, slot: int, identity: int, source_address: str | None
    ) -> None:
        # A reused slot starts with a clean overlay.
        self.overlays.discard(slot)
        if not self.config.has_localization or not source_address:
            return
        self.locales.on_authorize(identity, source_address)

    def on_participant_fully_connected(self, participant: Participant) -> None:
        self.dispatcher.schedule_welcome(participant)

    def on_participant_disconnected(self, participant: Participant) -> None:
        self.locales.on_disconnect(participant.identity)
        self.overlays.discard(participant.slot)

    def on_tick(self) -> None:
        for participant in self._host.participants():
            self.overlays.tick(participant)

    # -- introspection -----------------------------------------------------

    def status(self) -> dict[str, int | bool]:
        return {
            "running": self._running,
            "generation": self._generation.number,
            "armed_timers": self.rotation.armed_count,
            "pending_welcomes": self.dispatcher.pending_welcomes,
            "tracked_locales": len(self.locales),
            "active_overlays": self.overlays.active_count,
        }
