"""Shared fakes for monitor tests: clock, page fetcher, notification sink."""

import asyncio
from datetime import datetime, timedelta

import pytest
import pytz

from keyword_monitor.config import Config, CooldownConfig, TrialConfig, WindowConfig
from keyword_monitor.scrapers.page import FetchError
from keyword_monitor.utils.clock import Clock

TOKYO = pytz.timezone("Asia/Tokyo")


def tokyo(year, month, day, hour=0, minute=0):
    """Aware UTC instant for a Tokyo wall-clock time."""
    return TOKYO.localize(datetime(year, month, day, hour, minute)).astimezone(pytz.utc)


class FakeClock(Clock):
    def __init__(self, now: datetime, tz_name: str = "Asia/Tokyo"):
        super().__init__(tz_name)
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)


class FakeFetcher:
    """
    Returns scripted results in order. A result that is an exception
    instance is raised instead of returned.
    """

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def push(self, *results):
        self.results.extend(results)

    async def fetch_text(self, url: str) -> str:
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


class BlockingFetcher:
    """Holds every fetch open until `release` is set; records cleanup."""

    def __init__(self, text: str = ""):
        self.text = text
        self.release = asyncio.Event()
        self.started = 0
        self.closed = 0

    async def fetch_text(self, url: str) -> str:
        self.started += 1
        try:
            await self.release.wait()
            return self.text
        finally:
            self.closed += 1


class FakeSink:
    def __init__(self, delivered: bool = True):
        self.delivered = delivered
        self.messages = []

    async def notify(self, message) -> bool:
        self.messages.append(message)
        return self.delivered


class RecordingSleep:
    def __init__(self):
        self.waits = []

    async def __call__(self, seconds: float):
        self.waits.append(seconds)


def fetch_error(message: str = "net::ERR_CONNECTION_RESET") -> FetchError:
    return FetchError(message)


@pytest.fixture
def config():
    return Config(
        target_url="https://example.com/",
        keyword="カルア",
        webhook_url=None,
        window=WindowConfig(14, 20),
        cooldown=CooldownConfig(timedelta(hours=1)),
        trial=TrialConfig(start_date=None),
    )


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def sleep():
    return RecordingSleep()
