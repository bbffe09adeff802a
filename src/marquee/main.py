"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from marquee.api.admin import router as admin_router
from marquee.api.participants import router as participants_router
from marquee.api.server import router as server_router
from marquee.config import Settings
from marquee.core.engine import AdvertEngine, ConfigOverrides
from marquee.core.locale import CountryResolver, GeoIPCountryResolver
from marquee.core.relay import RelayHost
from marquee.core.store import ConfigStore
from marquee.core.timers import TimerService

logger = logging.getLogger(__name__)


def init_runtime(
    app: FastAPI,
    timers: TimerService,
    resolver: CountryResolver | None = None,
) -> AdvertEngine:
    """Build the relay host and engine and hang them on ``app.state``."""
    settings: Settings = app.state.settings
    relay = RelayHost(
        map_name=settings.marquee_map_name,
        ip_address=settings.marquee_ip,
        port=settings.marquee_port,
        max_participants=settings.marquee_max_participants,
        outbox_size=settings.marquee_outbox_size,
    )
    if resolver is None:
        resolver = GeoIPCountryResolver(settings.resolved_geoip_db_path())
    engine = AdvertEngine(
        host=relay,
        timers=timers,
        store=ConfigStore(settings.resolved_config_path()),
        resolver=resolver,
        tick_rate=settings.marquee_tick_rate,
        overrides=ConfigOverrides.from_settings(settings),
    )
    app.state.relay = relay
    app.state.engine = engine
    app.state.resolver = resolver
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: build the engine, start APScheduler, arm ad timers and the tick loop."""
    from apscheduler.schedulers.asyncio import AsyncIOScheduler
    from apscheduler.triggers.interval import IntervalTrigger

    from marquee.core.timers import SchedulerTimerService

    settings: Settings = app.state.settings
    scheduler = AsyncIOScheduler()
    engine = init_runtime(app, SchedulerTimerService(scheduler))
    app.state.scheduler = scheduler

    if settings.marquee_auto_start:
        generation = engine.start()

        async def _tick() -> None:
            engine.on_tick()

        scheduler.add_job(
            _tick,
            trigger=IntervalTrigger(seconds=settings.tick_interval_seconds),
            id="engine_tick",
            name="Advance overlays one tick",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        logger.info(
            "scheduler_started tick_rate=%d generation=%d groups=%d",
            settings.marquee_tick_rate,
            generation.number,
            len(generation.config.ads),
        )
    else:
        logger.info("scheduler_disabled auto_start=False")

    yield

    engine.stop()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("scheduler_stopped")
    resolver = app.state.resolver
    if isinstance(resolver, GeoIPCountryResolver):
        resolver.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the Marquee FastAPI application."""
    settings = settings or Settings()

    logging.basicConfig(
        level=getattr(logging, settings.marquee_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Marquee",
        version="0.1.0",
        description="Rotating server advertisements with localized templates and timed overlays",
        docs_url="/docs" if settings.marquee_env != "production" else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(participants_router)
    app.include_router(server_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "env": settings.marquee_env}

    return app


app = create_app()
