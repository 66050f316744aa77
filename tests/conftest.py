"""Shared fakes: a manually advanced scheduler, a settable clock and a recording display."""
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from kelvinshift.domain.models import ColorValue, ScheduleConfig, ScheduleMode
from kelvinshift.services.engine import ScheduleEngine
from kelvinshift.services.preferences import PreferenceStore

NY = ZoneInfo("America/New_York")

DAY = ColorValue(5000, 1.0)
NIGHT = ColorValue(2700, 0.8)


def make_config(**overrides) -> ScheduleConfig:
    fields = dict(
        day=DAY,
        night=NIGHT,
        transition_minutes=20,
        mode=ScheduleMode.CUSTOM,
        custom_day_start=7 * 60,
        custom_night_start=20 * 60,
        latitude=41.10,
        longitude=-74.01,
        enabled=True,
    )
    fields.update(overrides)
    return ScheduleConfig(**fields)


def local(hour: int, minute: int = 0, day: int = 21, month: int = 6, year: int = 2024) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=NY)


class FakeTask:
    def __init__(self, interval, callback, name, due):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.due = due
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Runs periodic callbacks only when advance() is called."""

    def __init__(self):
        self.now = 0.0
        self.tasks = []

    def every(self, interval, callback, name=""):
        task = FakeTask(interval, callback, name, self.now + interval)
        self.tasks.append(task)
        return task

    def active(self, name=None):
        return [t for t in self.tasks if not t.cancelled and (name is None or t.name == name)]

    def advance(self, seconds):
        end = self.now + seconds
        while True:
            due = [t for t in self.active() if t.due <= end]
            if not due:
                break
            task = min(due, key=lambda t: t.due)
            self.now = task.due
            task.due += task.interval
            task.callback()
        self.now = end


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingDisplay:
    sink_id = "recording"

    def __init__(self):
        self.calls = []
        self.fail = False
        self.raise_error = False

    def apply(self, temperature, brightness):
        self.calls.append(("apply", temperature, brightness))
        if self.raise_error:
            raise RuntimeError("display went away")
        return not self.fail

    def reset(self):
        self.calls.append(("reset",))

    @property
    def applied(self):
        return [c[1:] for c in self.calls if c[0] == "apply"]

    @property
    def last(self):
        return self.calls[-1] if self.calls else None


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def clock():
    return FakeClock(local(12, 0))


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def store():
    return PreferenceStore()


@pytest.fixture
def engine(store, display, scheduler, clock):
    return ScheduleEngine(
        store, display, scheduler,
        clock=clock, tick_seconds=15.0, demo_fps=60.0, demo_duration_seconds=10.0,
    )
