from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.config import settings
from ..core.timeutil import local_noon, now_local, now_utc
from ..domain import solar
from ..domain.blackbody import kelvin_to_rgb
from ..domain.errors import LocationError
from ..domain.models import ColorValue, DemoPlayback, ManualPreview, ScheduleState
from ..drivers.geolocation import IpGeolocator
from ..services.engine import ScheduleEngine
from ..services.preferences import PreferenceStore
from ..storage.sqlite_repo import SQLiteRepository
from .schemas import DemoRequest, PreferencesUpdateRequest, PreviewRequest
from .status import PHASE_LABELS, format_hhmm, schedule_label, status_title

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.create_app() replaces these via app.dependency_overrides.
def get_engine() -> ScheduleEngine:  # overridden in main
    raise RuntimeError("Engine dependency not configured")

def get_store() -> PreferenceStore:  # overridden in main
    raise RuntimeError("Preference store dependency not configured")

def get_repo() -> SQLiteRepository:  # overridden in main
    raise RuntimeError("Repo dependency not configured")

def get_locator() -> IpGeolocator:  # overridden in main
    raise RuntimeError("Locator dependency not configured")


def _parse_hhmm(s: str) -> int:
    try:
        h, m = s.split(":")
        h, m = int(h), int(m)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid time format: {s}, expected HH:MM")
    if h < 0 or h > 23 or m < 0 or m > 59:
        raise HTTPException(status_code=400, detail=f"Invalid time: {s}")
    return h * 60 + m


def _iso(dt) -> Optional[str]:
    return dt.isoformat() if dt else None


def _state_body(state: ScheduleState) -> dict:
    return {
        "phase": state.phase.value,
        "current": {"kelvin": state.current.temperature, "brightness": state.current.brightness},
        "day": {"kelvin": state.day.temperature, "brightness": state.day.brightness},
        "night": {"kelvin": state.night.temperature, "brightness": state.night.brightness},
        "sunrise": _iso(state.sunrise),
        "sunset": _iso(state.sunset),
        "next_boundary": _iso(state.next_boundary),
        "enabled": state.enabled,
    }


def _prefs_body(store: PreferenceStore) -> dict:
    p = store.prefs
    body = p.model_dump(mode="json")
    body["custom_day_start"] = format_hhmm(p.custom_day_start)
    body["custom_night_start"] = format_hhmm(p.custom_night_start)
    return body


async def _update_prefs(store: PreferenceStore, repo: SQLiteRepository, **changes) -> list[str]:
    changed = store.update(**changes)
    if changed:
        await repo.set_settings_batch(store.to_storage(changed))
    return changed


@router.get("/state")
async def get_state(
    engine: ScheduleEngine = Depends(get_engine),
    store: PreferenceStore = Depends(get_store),
):
    state = engine.state
    ov = engine.override
    r, g, b = kelvin_to_rgb(state.current.temperature)
    return {
        "app": settings.app_name,
        "now_local": now_local().isoformat(),
        "title": status_title(state),
        "phase_label": PHASE_LABELS[state.phase],
        "schedule_label": schedule_label(store.prefs, state),
        "rgb": [r, g, b],
        "state": _state_body(state),
        "engine": {
            "running": engine.is_running,
            "override": type(ov).__name__,
            "demo_progress": engine.demo_progress,
        },
    }


@router.post("/enable")
async def enable(store: PreferenceStore = Depends(get_store), repo: SQLiteRepository = Depends(get_repo)):
    await _update_prefs(store, repo, enabled=True)
    return {"ok": True, "enabled": store.prefs.enabled}


@router.post("/disable")
async def disable(store: PreferenceStore = Depends(get_store), repo: SQLiteRepository = Depends(get_repo)):
    await _update_prefs(store, repo, enabled=False)
    return {"ok": True, "enabled": store.prefs.enabled}


@router.get("/preferences")
async def get_preferences(store: PreferenceStore = Depends(get_store)):
    return {"preferences": _prefs_body(store)}


@router.put("/preferences")
async def update_preferences(
    req: PreferencesUpdateRequest,
    store: PreferenceStore = Depends(get_store),
    repo: SQLiteRepository = Depends(get_repo),
):
    changes = req.model_dump(exclude_none=True)
    for key in ("custom_day_start", "custom_night_start"):
        if key in changes:
            changes[key] = _parse_hhmm(changes[key])
    changed = await _update_prefs(store, repo, **changes)
    return {"ok": True, "updated_keys": changed, "preferences": _prefs_body(store)}


# --- Preview ---

def _preview_value(engine: ScheduleEngine, req: PreviewRequest) -> ColorValue:
    ov = engine.override
    base = ov.value if isinstance(ov, ManualPreview) else engine.state.current
    return ColorValue(
        temperature=req.kelvin if req.kelvin is not None else base.temperature,
        brightness=req.brightness if req.brightness is not None else base.brightness,
    )


@router.post("/preview/start")
async def preview_start(req: PreviewRequest, engine: ScheduleEngine = Depends(get_engine)):
    value = _preview_value(engine, req)
    engine.start_preview(value)
    return {"ok": True, "kelvin": value.temperature, "brightness": value.brightness}


@router.post("/preview/update")
async def preview_update(req: PreviewRequest, engine: ScheduleEngine = Depends(get_engine)):
    if not isinstance(engine.override, ManualPreview):
        return {"ok": False, "reason": "No preview active"}
    value = _preview_value(engine, req)
    engine.update_preview(value)
    return {"ok": True, "kelvin": value.temperature, "brightness": value.brightness}


@router.post("/preview/stop")
async def preview_stop(engine: ScheduleEngine = Depends(get_engine)):
    engine.stop_preview()
    return {"ok": True, "state": _state_body(engine.state)}


# --- Demo ---

@router.post("/demo/start")
async def demo_start(req: Optional[DemoRequest] = None, engine: ScheduleEngine = Depends(get_engine)):
    already = isinstance(engine.override, DemoPlayback)
    engine.start_demo(req.duration_s if req else None)
    return {"ok": True, "already_running": already}


@router.post("/demo/stop")
async def demo_stop(engine: ScheduleEngine = Depends(get_engine)):
    engine.stop_demo()
    return {"ok": True, "state": _state_body(engine.state)}


# --- Location / solar ---

@router.post("/location/locate")
async def locate(
    locator: IpGeolocator = Depends(get_locator),
    store: PreferenceStore = Depends(get_store),
    repo: SQLiteRepository = Depends(get_repo),
):
    try:
        loc = await locator.locate()
    except LocationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    changed = await _update_prefs(
        store, repo, latitude=loc.latitude, longitude=loc.longitude, location_name=loc.name
    )
    return {"ok": True, "latitude": loc.latitude, "longitude": loc.longitude, "name": loc.name, "updated_keys": changed}


@router.get("/solar")
async def solar_times(
    day: Optional[date] = Query(default=None, alias="date"),
    store: PreferenceStore = Depends(get_store),
):
    ref = now_local() if day is None else local_noon(day)
    p = store.prefs
    times = solar.calculate_for(ref, p.latitude, p.longitude)
    body = {"date": ref.date().isoformat(), "latitude": p.latitude, "longitude": p.longitude}
    if times is None:
        body.update({"polar": True, "sunrise": None, "sunset": None, "solar_noon": None})
    else:
        body.update({
            "polar": False,
            "sunrise": times.sunrise.isoformat(),
            "sunset": times.sunset.isoformat(),
            "solar_noon": times.solar_noon.isoformat(),
        })
    return body


@router.get("/history")
async def history(
    minutes: int = 24 * 60,
    limit: int = 2000,
    repo: SQLiteRepository = Depends(get_repo),
):
    end = now_utc()
    start = end - timedelta(minutes=max(1, minutes))
    rows = await repo.query_phase_events(start.isoformat(), end.isoformat(), limit=min(limit, 20000))
    return {
        "start_utc": start.isoformat(),
        "end_utc": end.isoformat(),
        "rows": [
            {
                "ts_utc": e.ts_utc.isoformat(),
                "phase": e.phase,
                "kelvin": e.temperature,
                "brightness": e.brightness,
                "enabled": e.enabled,
                "next_boundary": _iso(e.next_boundary),
            }
            for e in rows
        ],
    }
