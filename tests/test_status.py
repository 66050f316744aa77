from datetime import datetime

import pytest

from kelvinshift.api.status import format_hhmm, format_minutes, schedule_label, status_title
from kelvinshift.domain.models import NEUTRAL, SchedulePhase, ScheduleState
from kelvinshift.services.preferences import Preferences

from conftest import DAY, NIGHT


def _state(**overrides):
    fields = dict(
        phase=SchedulePhase.NIGHT, current=NIGHT, day=DAY, night=NIGHT,
        sunrise=None, sunset=None, next_boundary=None, enabled=True,
    )
    fields.update(overrides)
    return ScheduleState(**fields)


@pytest.mark.parametrize("minute, label", [(0, "12:00 AM"), (420, "7:00 AM"), (720, "12:00 PM"), (1230, "8:30 PM")])
def test_format_minutes(minute, label):
    assert format_minutes(minute) == label


def test_format_hhmm():
    assert format_hhmm(1439) == "23:59"
    assert format_hhmm(65) == "01:05"


def test_status_title():
    assert status_title(_state()) == "☾ 2700K"
    assert status_title(_state(enabled=False, current=NEUTRAL)) == "○ Off"


def test_schedule_label_custom():
    assert schedule_label(Preferences(), _state()) == "Schedule: 7:00 AM – 8:00 PM"


def test_schedule_label_solar():
    state = _state(sunrise=datetime(2024, 6, 21, 5, 25), sunset=datetime(2024, 6, 21, 20, 31))
    label = schedule_label(Preferences(schedule_mode="solar"), state)
    assert label == "Schedule: Solar  ↑5:25 AM  ↓8:31 PM"
