"""
Trial Expiry Notifier

Once-per-day reminder that the hosting trial is about to run out.

Runs every tick but only does work during TRIAL_CHECK_HOUR (local time), and
only notifies when the remaining days land on 7, 3 or 0. The day is marked
as checked only after such a notification, so other days are re-evaluated on
every tick within the check hour.
"""

import logging
from datetime import date, datetime
from typing import Optional

from ..alerts.discord import Severity, build_trial_message
from ..config import ConfigParseError, TrialConfig, TrialState, parse_trial_start
from ..utils.clock import Clock

logger = logging.getLogger(__name__)

# remaining days -> severity of the reminder
TRIAL_NOTIFY_DAYS = {
    7: Severity.INFO,
    3: Severity.WARNING,
    0: Severity.CRITICAL,
}


def remaining_days(start: date, now: datetime, clock: Clock, period_days: int) -> int:
    """
    Days left in the trial.

    The trial starts at local midnight of `start`; elapsed days are floored.
    """
    elapsed = now - clock.local_midnight(start)
    return period_days - elapsed.days


def severity_for(remaining: int) -> Optional[Severity]:
    """Severity of the reminder for `remaining` days, or None if no reminder is due."""
    return TRIAL_NOTIFY_DAYS.get(remaining)


class TrialExpiryNotifier:
    """Sends severity-tiered trial expiry reminders through the notification sink."""

    def __init__(self, config: TrialConfig, sink, clock: Clock, state: TrialState = None):
        self.config = config
        self.sink = sink
        self.clock = clock
        self.state = state or TrialState()
        self._parse_error_logged = False

    def _start_date(self) -> Optional[date]:
        if not self.config.enabled:
            return None
        try:
            return parse_trial_start(self.config.start_date)
        except ConfigParseError as e:
            if not self._parse_error_logged:
                logger.error(f"Trial expiry check disabled: {e}")
                self._parse_error_logged = True
            return None

    async def check(self, now: datetime) -> Optional[int]:
        """
        Run the daily trial check.

        Args:
            now: Current instant (timezone-aware)

        Returns:
            Remaining days if a reminder was dispatched, None otherwise
        """
        if not self.config.enabled:
            return None

        local_now = self.clock.localize(now)
        today = local_now.date()

        if self.state.last_checked_date == today:
            return None

        if local_now.hour != self.config.check_hour:
            return None

        start = self._start_date()
        if start is None:
            return None

        remaining = remaining_days(start, now, self.clock, self.config.period_days)
        logger.info(
            f"Trial expiry check: {self.config.period_days - remaining} days elapsed, "
            f"{remaining} days remaining"
        )

        severity = severity_for(remaining)
        if severity is None:
            return None

        message = build_trial_message(
            remaining_days=remaining,
            severity=severity,
            service_name=self.config.service_name,
            upgrade_url=self.config.upgrade_url,
            timestamp=now,
        )
        if await self.sink.notify(message):
            logger.info(f"Trial expiry reminder sent ({remaining} days remaining)")

        self.state.last_checked_date = today
        return remaining
