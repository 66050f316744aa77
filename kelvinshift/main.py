from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging
from .core.timeutil import now_local

from .api.routes import router as api_router
import kelvinshift.api.routes as routes_module

from .domain.interfaces import OutputSink, Scheduler
from .drivers.display_sim import SimulatedDisplay
from .drivers.gammarelay import GammaRelayDisplay
from .drivers.geolocation import IpGeolocator
from .services.engine import ScheduleEngine
from .services.history import PhaseRecorder
from .services.preferences import PreferenceStore
from .services.timers import AsyncioScheduler
from .storage.sqlite_repo import SQLiteRepository


logger = logging.getLogger(__name__)


def build_sink() -> OutputSink:
    if settings.output_mode.lower() == "gammarelay":
        return GammaRelayDisplay(busctl=settings.busctl_path, timeout=settings.busctl_timeout_seconds)
    # default to sim
    return SimulatedDisplay()


def create_app(
    *,
    sink: Optional[OutputSink] = None,
    scheduler: Optional[Scheduler] = None,
    clock: Callable[[], datetime] = now_local,
    repo: Optional[SQLiteRepository] = None,
    locator: Optional[IpGeolocator] = None,
    store: Optional[PreferenceStore] = None,
    log: bool = True,
) -> FastAPI:
    """Construct the service. Every collaborator can be injected for tests."""
    store = store or PreferenceStore()
    sink = sink or build_sink()
    repo = repo or SQLiteRepository(settings.sqlite_path)
    locator = locator or IpGeolocator(settings.geolocation_url, settings.geolocation_timeout_seconds)
    engine = ScheduleEngine(store, sink, scheduler or AsyncioScheduler(), clock=clock)
    recorder = PhaseRecorder(repo)
    engine.subscribe(recorder.on_state)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if log:
            configure_logging()
        logger.info("Starting %s (output_mode=%s)", settings.app_name, settings.output_mode)

        await repo.init()
        store.load_storage(await repo.get_all_settings())

        await recorder.start()
        engine.start()

        try:
            yield
        finally:
            engine.stop()
            sink.close()
            await recorder.stop()
            logger.info("Shutdown complete")

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.engine = engine
    app.state.store = store
    app.state.sink = sink

    # Make the dependency functions in routes resolve to the real ones
    app.dependency_overrides[routes_module.get_engine] = lambda: engine
    app.dependency_overrides[routes_module.get_store] = lambda: store
    app.dependency_overrides[routes_module.get_repo] = lambda: repo
    app.dependency_overrides[routes_module.get_locator] = lambda: locator

    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
