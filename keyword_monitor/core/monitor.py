"""
Monitor Service

Main monitoring loop. Each tick:
1. Runs the daily trial-expiry check
2. Checks the time-of-day window and the notification cooldown
3. Fetches the page text (with retry and backoff)
4. Feeds keyword presence into the edge detector
5. Sends a detection alert on a rising edge and starts the cooldown

Ticks fire once at startup and then on a fixed interval. At most one tick
runs at a time; a timer firing that lands while a tick is still in progress
is dropped.
"""

import asyncio
import logging
import signal
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..alerts.discord import DiscordWebhook, build_detection_message
from ..config import Config, MonitorState, TrialState
from ..scrapers.page import FetchError, PageFetcher
from ..utils.clock import Clock
from .detector import EdgeDetector
from .gate import GateReason, allow_check
from .trial import TrialExpiryNotifier

logger = logging.getLogger(__name__)


class TickOutcome(Enum):
    OUTSIDE_WINDOW = "outside_window"
    IN_COOLDOWN = "in_cooldown"
    FETCH_FAILED = "fetch_failed"
    CHECKED = "checked"      # fetched, no new detection
    NOTIFIED = "notified"    # rising edge, detection alert delivered
    ERROR = "error"


class Monitor:
    """
    Keyword monitoring service.

    Owns MonitorState and TrialState; nothing else mutates them. Collaborators
    (clock, fetcher, sink, sleep) can be injected for testing.
    """

    def __init__(
        self,
        config: Config,
        fetcher: PageFetcher = None,
        sink: DiscordWebhook = None,
        clock: Clock = None,
        state: MonitorState = None,
        trial_state: TrialState = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the monitor.

        Args:
            config: Runtime configuration
            fetcher: Page fetcher (default: Playwright PageFetcher)
            sink: Notification sink (default: Discord webhook from config)
            clock: Time source (default: system clock in config.timezone)
            state: Detection state (default: fresh)
            trial_state: Trial-expiry state (default: fresh)
            sleep: Coroutine used for retry backoff
        """
        self.config = config
        self.fetcher = fetcher or PageFetcher(config.fetch)
        self.sink = sink or DiscordWebhook.from_url(config.webhook_url, dry_run=config.dry_run)
        self.clock = clock or Clock(config.timezone)
        self.state = state or MonitorState()
        self.detector = EdgeDetector(self.state)
        self.trial = TrialExpiryNotifier(config.trial, self.sink, self.clock, trial_state)
        self._sleep = sleep

        self._running = False
        self._stop_event: Optional[asyncio.Event] = None
        self._current_tick: Optional[asyncio.Task] = None
        self.skipped_firings = 0

    @property
    def tick_in_progress(self) -> bool:
        return self._current_tick is not None and not self._current_tick.done()

    # -------------------------------------------------------------------------
    # Tick
    # -------------------------------------------------------------------------

    async def tick(self) -> TickOutcome:
        """Run one full check cycle. Never raises (except on cancellation)."""
        try:
            return await self._tick()
        except Exception as e:
            logger.exception(f"Monitor tick failed: {e}")
            return TickOutcome.ERROR

    async def _tick(self) -> TickOutcome:
        now = self.clock.now()
        local_now = self.clock.localize(now)
        logger.info(f"Check started (local time: {local_now:%Y-%m-%d %H:%M:%S %Z})")

        # 1. Trial expiry, independent of the gate
        try:
            await self.trial.check(now)
        except Exception as e:
            logger.exception(f"Trial expiry check failed: {e}")

        # 2. Window and cooldown
        decision = allow_check(
            now,
            self.state.last_notification_at,
            self.config.window,
            self.config.cooldown,
            self.clock,
        )
        if decision.reason is GateReason.OUTSIDE_WINDOW:
            logger.info(
                f"Outside monitoring window (hour {decision.local_hour}, window "
                f"{self.config.window.start_hour}:00-{self.config.window.end_hour}:00), skipping"
            )
            return TickOutcome.OUTSIDE_WINDOW
        if decision.reason is GateReason.IN_COOLDOWN:
            minutes = int(decision.remaining.total_seconds() // 60) + 1
            logger.info(f"Notification cooldown active (~{minutes} min remaining), skipping")
            return TickOutcome.IN_COOLDOWN

        # 3. Fetch with retry
        started = time.monotonic()
        text = await self.fetch_with_retry()
        if text is None:
            return TickOutcome.FETCH_FAILED

        # 4-5. Keyword presence and edge detection
        found = self.config.keyword in text
        duration_ms = (time.monotonic() - started) * 1000
        logger.info(
            f"Check complete ({duration_ms:.0f}ms): keyword "
            f"\"{self.config.keyword}\" {'found' if found else 'not found'}"
        )

        if not self.detector.observe(found):
            return TickOutcome.CHECKED

        # 6. Notify and start cooldown
        message = build_detection_message(
            keyword=self.config.keyword,
            url=self.config.target_url,
            page_text=text,
            detected_at=now,
            tz_name=self.config.timezone,
        )
        if not await self.sink.notify(message):
            logger.warning("Detection alert was not delivered, cooldown not started")
            return TickOutcome.CHECKED

        self.state.last_notification_at = now
        cooldown_min = self.config.cooldown.duration.total_seconds() / 60
        logger.info(f"Detection alert sent, pausing checks for {cooldown_min:.0f} min")
        return TickOutcome.NOTIFIED

    async def fetch_with_retry(self) -> Optional[str]:
        """
        Fetch the page text, retrying with linear backoff.

        Waits (attempt - 1) * backoff seconds before attempts 2..N.

        Returns:
            Page text, or None if every attempt failed
        """
        max_attempts = self.config.fetch.max_attempts

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                wait = self.config.fetch.backoff_before(attempt)
                logger.info(f"Retrying in {wait:.0f}s ({attempt}/{max_attempts})...")
                await self._sleep(wait)

            logger.debug(f"Fetch attempt {attempt}/{max_attempts}")
            try:
                return await self.fetcher.fetch_text(self.config.target_url)
            except FetchError as e:
                logger.error(f"Fetch failed (attempt {attempt}/{max_attempts}): {e}")

        logger.error(f"All {max_attempts} fetch attempts failed, check abandoned")
        return None

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def fire(self) -> bool:
        """
        Timer firing: start a tick unless one is already running.

        Returns:
            True if a tick was started, False if the firing was dropped
        """
        if self.tick_in_progress:
            self.skipped_firings += 1
            logger.warning("Previous check still running, skipping this interval")
            return False

        self._current_tick = asyncio.get_running_loop().create_task(self.tick())
        return True

    async def run(self, once: bool = False):
        """
        Run until stopped: one tick now, then one every check interval.

        Args:
            once: Run a single tick and return
        """
        if once:
            await self.tick()
            return

        self._running = True
        self._stop_event = asyncio.Event()
        self._install_signal_handlers()

        logger.info(f"Monitor started (interval: {self.config.check_interval_sec}s)")
        self.fire()

        try:
            while self._running:
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(), timeout=self.config.check_interval_sec
                    )
                except asyncio.TimeoutError:
                    self.fire()
        finally:
            await self._cancel_current_tick()
            self._remove_signal_handlers()
            logger.info("Monitor stopped")

    def stop(self):
        """Stop the timer loop; the in-flight tick is cancelled by run()."""
        if not self._running:
            return
        logger.info("Shutdown signal received, stopping monitor...")
        self._running = False
        if self._stop_event is not None:
            self._stop_event.set()

    async def _cancel_current_tick(self):
        task = self._current_tick
        if task is None or task.done():
            return
        task.cancel()
        try:
            # Browser sessions close while the task unwinds
            await task
        except asyncio.CancelledError:
            pass

    def _install_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform / not in main thread
                pass

    def _remove_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass
