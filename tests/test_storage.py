from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from kelvinshift.domain.models import PhaseEvent, SchedulePhase, ScheduleState
from kelvinshift.services.history import PhaseRecorder
from kelvinshift.storage.sqlite_repo import SQLiteRepository

from conftest import DAY, NIGHT


@pytest_asyncio.fixture
async def repo(tmp_path):
    r = SQLiteRepository(str(tmp_path / "kelvinshift.db"))
    await r.init()
    return r


def _state(phase, enabled=True):
    return ScheduleState(
        phase=phase,
        current=DAY if phase is SchedulePhase.DAY else NIGHT,
        day=DAY,
        night=NIGHT,
        sunrise=None,
        sunset=None,
        next_boundary=None,
        enabled=enabled,
    )


@pytest.mark.asyncio
async def test_settings_upsert(repo):
    await repo.set_settings_batch({"day_kelvin": "5000", "enabled": "true"})
    await repo.set_settings_batch({"day_kelvin": "6000"})
    assert await repo.get_all_settings() == {"day_kelvin": "6000", "enabled": "true"}


@pytest.mark.asyncio
async def test_init_is_idempotent(repo):
    await repo.set_settings_batch({"night_kelvin": "2700"})
    await repo.init()
    assert await repo.get_all_settings() == {"night_kelvin": "2700"}


@pytest.mark.asyncio
async def test_phase_events_window_and_order(repo):
    base = datetime(2024, 6, 21, 12, 0, tzinfo=timezone.utc)
    boundary = base + timedelta(hours=8)
    for i, phase in enumerate(["day", "transition_to_night", "night"]):
        await repo.insert_phase_event(PhaseEvent(
            ts_utc=base + timedelta(minutes=10 * i),
            phase=phase,
            temperature=5000 - 1000 * i,
            brightness=1.0,
            enabled=True,
            next_boundary=boundary if i == 0 else None,
        ))

    rows = await repo.query_phase_events(
        base.isoformat(), (base + timedelta(minutes=15)).isoformat(), limit=10
    )
    assert [r.phase for r in rows] == ["day", "transition_to_night"]
    assert rows[0].next_boundary == boundary
    assert rows[1].next_boundary is None

    latest = await repo.query_phase_events(
        base.isoformat(), (base + timedelta(hours=1)).isoformat(), limit=1
    )
    assert [r.phase for r in latest] == ["night"]


@pytest.mark.asyncio
async def test_recorder_persists_phase_changes_only(repo):
    recorder = PhaseRecorder(repo)
    await recorder.start()
    recorder.on_state(_state(SchedulePhase.DAY))
    recorder.on_state(_state(SchedulePhase.DAY))
    recorder.on_state(_state(SchedulePhase.NIGHT))
    recorder.on_state(_state(SchedulePhase.NIGHT, enabled=False))
    await recorder.stop()

    end = datetime.now(timezone.utc) + timedelta(seconds=1)
    rows = await repo.query_phase_events(
        (end - timedelta(minutes=5)).isoformat(), end.isoformat(), limit=100
    )
    assert [(r.phase, r.enabled) for r in rows] == [
        ("day", True),
        ("night", True),
        ("night", False),
    ]
    assert rows[1].temperature == NIGHT.temperature


@pytest.mark.asyncio
async def test_recorder_drops_when_queue_full(repo):
    recorder = PhaseRecorder(repo, maxsize=1)
    recorder.on_state(_state(SchedulePhase.DAY))
    recorder.on_state(_state(SchedulePhase.NIGHT))
    await recorder.start()
    await recorder.stop()
    end = datetime.now(timezone.utc) + timedelta(seconds=1)
    rows = await repo.query_phase_events(
        (end - timedelta(minutes=5)).isoformat(), end.isoformat(), limit=100
    )
    assert [r.phase for r in rows] == ["day"]
