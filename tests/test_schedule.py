from collections import Counter
from datetime import timedelta

import pytest
from hypothesis import given, settings, strategies as st

from kelvinshift.domain.clock import in_arc, normalize
from kelvinshift.domain.models import ScheduleMode, SchedulePhase
from kelvinshift.domain.schedule import PhaseResolver

from conftest import DAY, NIGHT, local, make_config

resolver = PhaseResolver()


def at(minute_of_day: int):
    h, m = divmod(minute_of_day, 60)
    return local(h, m)


class TestCustomSchedule:
    """07:00 day, 20:00 night, 20 minute transitions."""

    def test_just_before_day_start_is_transitioning_to_day(self):
        # 06:40-07:00 is the night->day arc
        res = resolver.resolve(at(419), make_config())
        assert res.phase is SchedulePhase.TRANSITION_TO_DAY
        assert res.progress == pytest.approx(0.95)
        assert res.next_boundary == local(7, 0)

    def test_day_starts_exactly_at_day_start(self):
        res = resolver.resolve(at(420), make_config())
        assert res.phase is SchedulePhase.DAY
        assert res.value == DAY
        assert res.next_boundary == local(19, 40)

    def test_midway_through_evening_transition(self):
        res = resolver.resolve(at(1190), make_config())
        assert res.phase is SchedulePhase.TRANSITION_TO_NIGHT
        assert res.progress == 0.5
        assert res.value.temperature == 3850
        assert res.value.brightness == pytest.approx(0.9)

    def test_night_starts_exactly_at_night_start(self):
        res = resolver.resolve(at(1200), make_config())
        assert res.phase is SchedulePhase.NIGHT
        assert res.value == NIGHT
        assert res.next_boundary == local(6, 40) + timedelta(days=1)

    def test_early_morning_is_night(self):
        res = resolver.resolve(at(120), make_config())
        assert res.phase is SchedulePhase.NIGHT
        assert res.next_boundary == local(6, 40)

    def test_transition_starts_at_day_value(self):
        res = resolver.resolve(at(1180), make_config())
        assert res.phase is SchedulePhase.TRANSITION_TO_NIGHT
        assert res.value == DAY

    def test_custom_mode_reports_no_sun_times(self):
        res = resolver.resolve(at(600), make_config())
        assert res.sunrise is None and res.sunset is None


class TestWrapAroundMidnight:
    """Day starts 00:10, so the morning transition runs 23:50 -> 00:10."""

    config = make_config(custom_day_start=10, custom_night_start=720)

    def test_before_midnight(self):
        res = resolver.resolve(at(1435), self.config)
        assert res.phase is SchedulePhase.TRANSITION_TO_DAY
        assert res.progress == 0.25
        assert res.next_boundary == local(0, 10) + timedelta(days=1)

    def test_after_midnight(self):
        res = resolver.resolve(at(5), self.config)
        assert res.phase is SchedulePhase.TRANSITION_TO_DAY
        assert res.progress == 0.75
        assert res.next_boundary == local(0, 10)

    def test_day_at_day_start(self):
        assert resolver.resolve(at(10), self.config).phase is SchedulePhase.DAY

    def test_night_before_transition(self):
        assert resolver.resolve(at(1429), self.config).phase is SchedulePhase.NIGHT


@st.composite
def schedules(draw):
    day_start = draw(st.integers(0, 1439))
    night_start = draw(st.integers(0, 1439).filter(lambda n: n != day_start))
    longest = min(normalize(night_start - day_start), normalize(day_start - night_start))
    transition = draw(st.integers(1, longest))
    return day_start, night_start, transition


class TestPartition:
    @settings(max_examples=60, deadline=None)
    @given(schedules())
    def test_exactly_one_arc_holds_every_minute(self, schedule):
        day_start, night_start, tran = schedule
        night_trans = normalize(night_start - tran)
        day_trans = normalize(day_start - tran)
        arcs = [
            (SchedulePhase.DAY, day_start, night_trans),
            (SchedulePhase.TRANSITION_TO_NIGHT, night_trans, night_start),
            (SchedulePhase.NIGHT, night_start, day_trans),
            (SchedulePhase.TRANSITION_TO_DAY, day_trans, day_start),
        ]
        config = make_config(
            custom_day_start=day_start, custom_night_start=night_start, transition_minutes=tran,
        )
        for t in range(1440):
            holding = [phase for phase, start, end in arcs if in_arc(t, start, end)]
            assert len(holding) == 1, (t, holding)
            res = resolver.resolve(at(t), config)
            assert res.phase is holding[0]
            assert 0.0 <= res.progress <= 1.0
            assert res.next_boundary >= at(t)


def phase_minutes(config):
    counts = Counter(resolver.resolve(at(t), config).phase for t in range(1440))
    return {phase: counts[phase] for phase in SchedulePhase}


class TestTransitionLongerThanGap:
    """Arcs overlap; earlier arcs in the precedence order win."""

    def test_short_day_is_swallowed_by_the_day_arc(self):
        # 07:00 -> 10:00 day with a five hour transition: night_trans is 05:00,
        # so the day arc wraps from 07:00 all the way round to 05:00
        config = make_config(custom_day_start=420, custom_night_start=600, transition_minutes=300)
        assert phase_minutes(config) == {
            SchedulePhase.DAY: 1320,
            SchedulePhase.TRANSITION_TO_NIGHT: 120,
            SchedulePhase.NIGHT: 0,
            SchedulePhase.TRANSITION_TO_DAY: 0,
        }
        res = resolver.resolve(at(350), config)
        assert res.phase is SchedulePhase.TRANSITION_TO_NIGHT
        assert res.progress == pytest.approx(50 / 300)
        assert resolver.resolve(at(700), config).phase is SchedulePhase.DAY

    def test_short_night_loses_the_morning_transition(self):
        config = make_config(transition_minutes=720)
        assert phase_minutes(config) == {
            SchedulePhase.DAY: 60,
            SchedulePhase.TRANSITION_TO_NIGHT: 720,
            SchedulePhase.NIGHT: 660,
            SchedulePhase.TRANSITION_TO_DAY: 0,
        }
        # Night runs straight into day at 07:00
        assert resolver.resolve(at(419), config).phase is SchedulePhase.NIGHT
        assert resolver.resolve(at(420), config).value == DAY
        assert resolver.resolve(at(840), config).progress == pytest.approx(0.5)


class TestSolarSchedule:
    def test_boundaries_follow_sunrise_and_sunset(self):
        config = make_config(mode=ScheduleMode.SOLAR)
        res = resolver.resolve(local(12, 0), config)
        assert res.phase is SchedulePhase.DAY
        assert res.sunrise is not None and res.sunset is not None
        # Evening transition ends at sunset
        assert res.next_boundary == local(res.sunset.hour, res.sunset.minute) - timedelta(minutes=20)

    def test_night_after_sunset(self):
        config = make_config(mode=ScheduleMode.SOLAR)
        res = resolver.resolve(local(22, 30), config)
        assert res.phase is SchedulePhase.NIGHT

    def test_polar_night_falls_back_to_custom_times(self):
        config = make_config(mode=ScheduleMode.SOLAR, latitude=89.0, longitude=0.0)
        noon_in_december = local(12, 0, day=21, month=12)
        res = resolver.resolve(noon_in_december, config)
        assert res.phase is SchedulePhase.DAY
        assert res.sunrise is None and res.sunset is None
        assert res.next_boundary == local(19, 40, day=21, month=12)
