import asyncio
import logging
from datetime import date, timedelta

import pytest

from keyword_monitor.alerts.discord import Severity
from keyword_monitor.config import TrialConfig, TrialState
from keyword_monitor.core.trial import TrialExpiryNotifier, remaining_days, severity_for
from keyword_monitor.utils.clock import Clock

from conftest import FakeSink, tokyo

START = date(2026, 1, 1)
CLOCK = Clock("Asia/Tokyo")


def at_elapsed(days, hour=14, minute=30):
    day = START + timedelta(days=days)
    return tokyo(day.year, day.month, day.day, hour, minute)


def make_notifier(start_date="2026-01-01", sink=None, state=None):
    sink = sink or FakeSink()
    notifier = TrialExpiryNotifier(TrialConfig(start_date=start_date), sink, CLOCK, state)
    return notifier, sink


@pytest.mark.parametrize("elapsed,expected_remaining,expected_severity", [
    (23, 7, Severity.INFO),
    (27, 3, Severity.WARNING),
    (30, 0, Severity.CRITICAL),
    (10, 20, None),
])
def test_remaining_days_mapping(elapsed, expected_remaining, expected_severity):
    remaining = remaining_days(START, at_elapsed(elapsed), CLOCK, 30)

    assert remaining == expected_remaining
    assert severity_for(remaining) is expected_severity


def test_elapsed_days_are_floored():
    assert remaining_days(START, at_elapsed(23, hour=0, minute=1), CLOCK, 30) == 7
    assert remaining_days(START, at_elapsed(23, hour=23, minute=59), CLOCK, 30) == 7


@pytest.mark.parametrize("elapsed,color", [
    (23, 0xFFFF00),
    (27, 0xFFA500),
    (30, 0xFF0000),
])
def test_eligible_day_notifies_with_severity_color(elapsed, color):
    notifier, sink = make_notifier()

    result = asyncio.run(notifier.check(at_elapsed(elapsed)))

    assert result == 30 - elapsed
    assert len(sink.messages) == 1
    assert sink.messages[0]["embeds"][0]["color"] == color
    assert notifier.state.last_checked_date == (START + timedelta(days=elapsed))


def test_notifies_at_most_once_per_day():
    notifier, sink = make_notifier()

    async def scenario():
        await notifier.check(at_elapsed(23, minute=0))
        await notifier.check(at_elapsed(23, minute=1))
        await notifier.check(at_elapsed(23, minute=59))

    asyncio.run(scenario())

    assert len(sink.messages) == 1


def test_ineligible_day_is_not_marked_checked():
    notifier, sink = make_notifier()

    assert asyncio.run(notifier.check(at_elapsed(10))) is None

    assert sink.messages == []
    assert notifier.state.last_checked_date is None


@pytest.mark.parametrize("hour", [0, 13, 15, 23])
def test_only_runs_in_check_hour(hour):
    notifier, sink = make_notifier()

    assert asyncio.run(notifier.check(at_elapsed(23, hour=hour))) is None
    assert sink.messages == []


def test_already_checked_today_skips():
    today = START + timedelta(days=23)
    notifier, sink = make_notifier(state=TrialState(last_checked_date=today))

    assert asyncio.run(notifier.check(at_elapsed(23))) is None
    assert sink.messages == []


def test_next_eligible_day_after_checked_day_notifies():
    notifier, sink = make_notifier()

    async def scenario():
        await notifier.check(at_elapsed(23))
        await notifier.check(at_elapsed(27))

    asyncio.run(scenario())

    assert [m["embeds"][0]["color"] for m in sink.messages] == [0xFFFF00, 0xFFA500]


def test_inert_without_start_date():
    notifier, sink = make_notifier(start_date=None)

    assert asyncio.run(notifier.check(at_elapsed(23))) is None
    assert sink.messages == []


def test_malformed_start_date_is_inert_and_logged_once(caplog):
    notifier, sink = make_notifier(start_date="2026/01/01")

    async def scenario():
        await notifier.check(at_elapsed(23, minute=0))
        await notifier.check(at_elapsed(23, minute=1))

    with caplog.at_level(logging.ERROR, logger="keyword_monitor.core.trial"):
        asyncio.run(scenario())

    assert sink.messages == []
    assert notifier.state.last_checked_date is None
    errors = [r for r in caplog.records if "TRIAL_START_DATE" in r.getMessage()]
    assert len(errors) == 1


def test_undelivered_reminder_still_marks_day():
    notifier, sink = make_notifier(sink=FakeSink(delivered=False))

    assert asyncio.run(notifier.check(at_elapsed(27))) == 3
    assert notifier.state.last_checked_date == START + timedelta(days=27)
