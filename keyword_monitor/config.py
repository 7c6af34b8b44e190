"""
Configuration for the Keyword Monitor

All settings in one place for easy tuning. `Config.from_env()` builds the
runtime configuration from the environment, falling back to the defaults in
`keyword_monitor.settings`.
"""

import os
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, List, Mapping, Optional, Tuple

from . import settings


class ConfigParseError(ValueError):
    """A configuration value could not be parsed."""


# =============================================================================
# Data Models
# =============================================================================

@dataclass
class MonitorState:
    """Keyword detection state, owned by the Monitor."""
    last_keyword_found: bool = False
    last_notification_at: Optional[datetime] = None


@dataclass
class TrialState:
    """Trial-expiry bookkeeping, owned by the TrialExpiryNotifier."""
    last_checked_date: Optional[date] = None


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class WindowConfig:
    """Local-time window [start_hour, end_hour) in which page checks run."""
    start_hour: int = settings.WINDOW_START_HOUR
    end_hour: int = settings.WINDOW_END_HOUR

    def __post_init__(self):
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(
                f"Invalid monitoring window [{self.start_hour}, {self.end_hour}): "
                "expected 0 <= start < end <= 24"
            )

    def contains(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour


@dataclass
class CooldownConfig:
    """Minimum pause after a detection notification."""
    duration: timedelta = timedelta(minutes=settings.COOLDOWN_MINUTES)

    def __post_init__(self):
        if self.duration <= timedelta(0):
            raise ValueError(f"Cooldown must be positive, got {self.duration}")


@dataclass
class TrialConfig:
    """
    Trial-expiry settings.

    `start_date` is kept as the raw `YYYY-MM-DD` string so a malformed value
    only disables the trial check instead of failing startup.
    """
    start_date: Optional[str] = None
    period_days: int = settings.TRIAL_PERIOD_DAYS
    check_hour: int = settings.TRIAL_CHECK_HOUR
    service_name: str = settings.TRIAL_SERVICE_NAME
    upgrade_url: str = settings.TRIAL_UPGRADE_URL

    @property
    def enabled(self) -> bool:
        return bool(self.start_date)


@dataclass
class FetchConfig:
    """Browser and retry settings for the page fetcher."""
    headless: bool = settings.HEADLESS_MODE
    launch_timeout_sec: float = settings.LAUNCH_TIMEOUT_SECONDS
    navigation_timeout_sec: float = settings.NAVIGATION_TIMEOUT_SECONDS
    settle_delay_sec: float = settings.SETTLE_DELAY_SECONDS
    viewport: Dict[str, int] = field(default_factory=lambda: dict(settings.VIEWPORT))
    blocked_resource_types: Tuple[str, ...] = settings.BLOCKED_RESOURCE_TYPES
    chromium_args: List[str] = field(default_factory=lambda: list(settings.CHROMIUM_ARGS))

    # Retry policy (owned by the Monitor)
    max_attempts: int = settings.MAX_FETCH_ATTEMPTS
    backoff_sec: float = settings.RETRY_BACKOFF_SECONDS

    def __post_init__(self):
        if not 10 <= self.navigation_timeout_sec <= 30:
            raise ValueError(
                f"Navigation timeout must be between 10 and 30 seconds, "
                f"got {self.navigation_timeout_sec}"
            )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def backoff_before(self, attempt: int) -> float:
        """Seconds to wait before the given 1-based attempt (2s, then 4s)."""
        if attempt <= 1:
            return 0.0
        return (attempt - 1) * self.backoff_sec


@dataclass
class Config:
    """All runtime settings."""
    target_url: str = settings.TARGET_URL
    keyword: str = settings.KEYWORD
    webhook_url: Optional[str] = None
    timezone: str = settings.MONITOR_TIMEZONE
    check_interval_sec: float = settings.CHECK_INTERVAL_SECONDS
    dry_run: bool = False

    window: WindowConfig = field(default_factory=WindowConfig)
    cooldown: CooldownConfig = field(default_factory=CooldownConfig)
    trial: TrialConfig = field(default_factory=TrialConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)

    def __post_init__(self):
        if self.check_interval_sec <= 0:
            raise ValueError(
                f"Check interval must be positive, got {self.check_interval_sec}s"
            )

    @classmethod
    def from_env(cls, env: Mapping[str, str] = None) -> "Config":
        """
        Build configuration from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ)

        Returns:
            Config instance

        Raises:
            ValueError: If a numeric setting is malformed or out of range
        """
        if env is None:
            env = os.environ

        def _get(name: str, default):
            value = env.get(name)
            return value.strip() if value and value.strip() else default

        def _int(name: str, default: int) -> int:
            raw = _get(name, None)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                raise ValueError(f"{name} must be an integer, got {raw!r}") from None

        return cls(
            target_url=_get("MONITOR_TARGET_URL", settings.TARGET_URL),
            keyword=_get("MONITOR_KEYWORD", settings.KEYWORD),
            webhook_url=_get("DISCORD_WEBHOOK_URL", None),
            timezone=_get("MONITOR_TIMEZONE", settings.MONITOR_TIMEZONE),
            check_interval_sec=_int(
                "MONITOR_CHECK_INTERVAL_SECONDS", settings.CHECK_INTERVAL_SECONDS
            ),
            window=WindowConfig(
                start_hour=_int("MONITOR_WINDOW_START_HOUR", settings.WINDOW_START_HOUR),
                end_hour=_int("MONITOR_WINDOW_END_HOUR", settings.WINDOW_END_HOUR),
            ),
            cooldown=CooldownConfig(
                duration=timedelta(
                    minutes=_int("MONITOR_COOLDOWN_MINUTES", settings.COOLDOWN_MINUTES)
                )
            ),
            trial=TrialConfig(
                start_date=_get("TRIAL_START_DATE", None),
                service_name=_get("TRIAL_SERVICE_NAME", settings.TRIAL_SERVICE_NAME),
                upgrade_url=_get("TRIAL_UPGRADE_URL", settings.TRIAL_UPGRADE_URL),
            ),
        )


def parse_trial_start(raw: str) -> date:
    """
    Parse a trial start date in YYYY-MM-DD form.

    Raises:
        ConfigParseError: If the value is not a valid calendar date
    """
    try:
        return datetime.strptime(raw.strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError) as e:
        raise ConfigParseError(
            f"TRIAL_START_DATE must be YYYY-MM-DD, got {raw!r}"
        ) from e
