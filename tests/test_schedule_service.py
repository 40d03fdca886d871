from datetime import time, timedelta

import pytest

from telemetry_hub.services.schedule_service import ScheduleService, in_window
from tests.conftest import START


@pytest.fixture
def schedule(db):
    return ScheduleService(db, default_interval=300)


def test_unset_schedule_uses_default_interval(schedule):
    assert schedule.get() is None
    assert schedule.effective_interval(START) == 300
    assert schedule.safety_cutoff(START) == START - timedelta(seconds=330)


def test_global_schedule_outside_window(schedule):
    # START is 12:00, window is in the early morning
    schedule.set_global(time(1, 0), time(2, 0), active_period=60, inactive_period=300)

    assert schedule.effective_interval(START) == 300
    assert schedule.safety_cutoff(START) == START - timedelta(seconds=330)


def test_global_schedule_inside_window(schedule):
    schedule.set_global(time(11, 0), time(13, 0), active_period=60, inactive_period=300)
    assert schedule.effective_interval(START) == 60


def test_window_bounds_are_inclusive(schedule):
    schedule.set_global(time(12, 0), time(12, 30), active_period=15, inactive_period=600)
    assert schedule.effective_interval(START) == 15
    assert schedule.effective_interval(START.replace(minute=30)) == 15
    assert schedule.effective_interval(START.replace(minute=31)) == 600


def test_global_schedule_sets_margin_outright(schedule):
    schedule.set_global(time(1, 0), time(2, 0), active_period=60, inactive_period=900)
    schedule.set_global(time(1, 0), time(2, 0), active_period=10, inactive_period=20)
    assert schedule.margin_base() == 20


def test_node_schedule_never_lowers_margin(schedule):
    schedule.set_global(time(1, 0), time(2, 0), active_period=60, inactive_period=300)
    config = schedule.set_for_node(time(1, 0), time(2, 0), active_period=10, inactive_period=20)

    assert config.margin_base == 300
    assert config.active_period == 10
    assert config.inactive_period == 20


def test_node_schedule_raises_margin(schedule):
    schedule.set_global(time(1, 0), time(2, 0), active_period=60, inactive_period=300)
    schedule.set_for_node(time(1, 0), time(2, 0), active_period=1200, inactive_period=20)
    assert schedule.margin_base() == 1200


def test_first_node_schedule_merges_with_default(schedule):
    schedule.set_for_node(time(1, 0), time(2, 0), active_period=10, inactive_period=20)
    assert schedule.margin_base() == 300


def test_schedule_record_is_shared_between_sessions(session_factory):
    writer = session_factory()
    reader = session_factory()
    try:
        ScheduleService(reader, 300).effective_interval(START)
        ScheduleService(writer, 300).set_global(time(11, 0), time(13, 0), 45, 90)
        assert ScheduleService(reader, 300).effective_interval(START) == 45
    finally:
        writer.close()
        reader.close()


def test_cutoff_is_non_decreasing(schedule):
    schedule.set_global(time(8, 0), time(20, 0), active_period=60, inactive_period=300)
    moments = [START + timedelta(minutes=m) for m in range(0, 24 * 60, 37)]
    cutoffs = [schedule.safety_cutoff(moment) for moment in moments]
    assert cutoffs == sorted(cutoffs)


def test_custom_slack_factor(db):
    schedule = ScheduleService(db, default_interval=100, slack_factor=1.5)
    assert schedule.safety_cutoff(START) == START - timedelta(seconds=150)


@pytest.mark.parametrize(
    "start, end, moment, expected",
    [
        (time(8), time(20), time(12), True),
        (time(8), time(20), time(21), False),
        (time(22), time(2), time(23), True),
        (time(22), time(2), time(1), True),
        (time(22), time(2), time(12), False),
    ],
)
def test_in_window(start, end, moment, expected):
    assert in_window(start, end, moment) is expected
