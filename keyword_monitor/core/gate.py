"""
Window / Cooldown Gate

Decides whether a tick may check the page. Pure function of the current
instant, the last notification time and fixed configuration.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ..config import CooldownConfig, WindowConfig
from ..utils.clock import Clock


class GateReason(Enum):
    PROCEED = "proceed"
    OUTSIDE_WINDOW = "outside window"
    IN_COOLDOWN = "in cooldown"


@dataclass
class GateDecision:
    reason: GateReason
    local_hour: int
    remaining: Optional[timedelta] = None  # cooldown time left, for logging

    @property
    def proceed(self) -> bool:
        return self.reason is GateReason.PROCEED


def allow_check(
    now: datetime,
    last_notification_at: Optional[datetime],
    window: WindowConfig,
    cooldown: CooldownConfig,
    clock: Clock,
) -> GateDecision:
    """
    Evaluate the time-of-day window, then the notification cooldown.

    Args:
        now: Current instant (timezone-aware)
        last_notification_at: When the last detection notification was delivered
        window: Monitoring window in local hours
        cooldown: Pause after a notification
        clock: Clock providing the local timezone

    Returns:
        GateDecision; outside the window wins over cooldown
    """
    hour = clock.local_hour(now)

    if not window.contains(hour):
        return GateDecision(GateReason.OUTSIDE_WINDOW, hour)

    if last_notification_at is not None:
        elapsed = now - last_notification_at
        if elapsed < cooldown.duration:
            return GateDecision(GateReason.IN_COOLDOWN, hour, cooldown.duration - elapsed)

    return GateDecision(GateReason.PROCEED, hour)
