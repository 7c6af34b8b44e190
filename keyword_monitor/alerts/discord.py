"""
Discord Alerts
==============

Discord webhook notifications for the keyword monitor.

Alert types:
- Detection alerts: Sent when the keyword appears on the watched page
- Trial expiry alerts: Sent 7, 3 and 0 days before the hosting trial ends

Delivery is best-effort: failures are logged and reported as False, never
raised to the caller and never retried.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp
import pytz
import requests

from .. import settings

logger = logging.getLogger(__name__)

FOOTER_TEXT = "Keyword Monitor"

DETECTION_COLOR = 0x00FF00  # green


class NotificationDeliveryError(Exception):
    """The webhook could not be reached or answered with a non-success status."""


class Severity(Enum):
    """Trial reminder severity, with its embed color."""
    INFO = 0xFFFF00      # yellow
    WARNING = 0xFFA500   # orange
    CRITICAL = 0xFF0000  # red

    @property
    def color(self) -> int:
        return self.value


@dataclass
class AlertConfig:
    """Configuration for alert sending."""
    webhook_url: Optional[str]
    dry_run: bool = False
    timeout_sec: float = settings.WEBHOOK_TIMEOUT_SECONDS


class DiscordWebhook:
    """
    Discord webhook sender.

    `notify` never raises: transport errors and non-2xx responses are
    logged and reported as False.
    """

    def __init__(self, config: AlertConfig):
        self.config = config

    @classmethod
    def from_url(cls, webhook_url: Optional[str], dry_run: bool = False) -> "DiscordWebhook":
        if not webhook_url and not dry_run:
            logger.warning("Discord not configured (set DISCORD_WEBHOOK_URL), notifications disabled")
        return cls(AlertConfig(webhook_url=webhook_url or None, dry_run=dry_run))

    @property
    def configured(self) -> bool:
        return bool(self.config.webhook_url)

    async def notify(self, message: Dict[str, Any]) -> bool:
        """
        Send a webhook message.

        Args:
            message: Discord webhook payload (content + embeds)

        Returns:
            True if the message was delivered (or logged in dry-run mode)
        """
        if self.config.dry_run:
            logger.info(f"[DRY RUN] Would send Discord message:\n{json.dumps(message, ensure_ascii=False, indent=2)}")
            return True

        if not self.configured:
            logger.warning("Discord webhook URL not set, notification skipped")
            return False

        try:
            status = await self._post(message)
        except NotificationDeliveryError as e:
            logger.error(f"Discord notification failed: {e}")
            return False

        logger.info(f"Discord notification sent (status {status})")
        return True

    async def _post(self, message: Dict[str, Any]) -> int:
        """POST the payload; raises NotificationDeliveryError on any failure."""
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_sec)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    self.config.webhook_url,
                    json=message,
                    headers={"Content-Type": "application/json"},
                ) as response:
                    if response.status >= 300:
                        # Don't log the URL, it carries the webhook token
                        raise NotificationDeliveryError(
                            f"HTTP {response.status} {response.reason}"
                        )
                    return response.status
        except aiohttp.ClientError as e:
            raise NotificationDeliveryError(f"{type(e).__name__}: {e}") from e
        except asyncio.TimeoutError as e:
            raise NotificationDeliveryError("request timed out") from e


# =============================================================================
# Message builders
# =============================================================================

def line_share_url(text: str) -> str:
    """LINE 'share message' deep link for `text`."""
    return f"https://line.me/R/msg/text/?{quote(text, safe='')}"


def build_detection_message(
    keyword: str,
    url: str,
    page_text: str,
    detected_at: datetime = None,
    tz_name: str = settings.MONITOR_TIMEZONE,
    excerpt_length: int = settings.PAGE_EXCERPT_LENGTH,
) -> Dict[str, Any]:
    """
    Build the keyword detection payload.

    Args:
        keyword: Keyword that appeared
        url: Watched page
        page_text: Extracted page text (excerpted)
        detected_at: Detection instant (default: now)
        tz_name: Timezone for the human-readable detection time

    Returns:
        Discord webhook payload
    """
    if detected_at is None:
        detected_at = datetime.now(timezone.utc)

    local_time = detected_at.astimezone(pytz.timezone(tz_name))
    share_text = f"🎉 {keyword} was detected!\n{url}"

    return {
        "content": f"🎉 Keyword \"{keyword}\" detected!",
        "embeds": [{
            "title": f"🔔 {keyword} detected",
            "url": url,
            "color": DETECTION_COLOR,
            "fields": [
                {
                    "name": "Detected at",
                    "value": local_time.strftime("%Y-%m-%d %H:%M:%S %Z"),
                    "inline": True,
                },
                {
                    "name": "URL",
                    "value": url,
                    "inline": False,
                },
                {
                    "name": "📱 Share on LINE",
                    "value": f"[Tap here to share on LINE]({line_share_url(share_text)})",
                    "inline": False,
                },
                {
                    "name": "Page excerpt",
                    "value": page_text[:excerpt_length] + "...",
                    "inline": False,
                },
            ],
            "timestamp": detected_at.isoformat(),
            "footer": {"text": FOOTER_TEXT},
        }],
    }


def build_trial_message(
    remaining_days: int,
    severity: Severity,
    service_name: str = settings.TRIAL_SERVICE_NAME,
    upgrade_url: str = settings.TRIAL_UPGRADE_URL,
    timestamp: datetime = None,
) -> Dict[str, Any]:
    """
    Build the trial expiry reminder payload.

    Args:
        remaining_days: Days left in the trial
        severity: Reminder severity (sets title and color)
        service_name: Hosting service name
        upgrade_url: Billing page for upgrading
        timestamp: Message timestamp (default: now)

    Returns:
        Discord webhook payload
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    if severity is Severity.CRITICAL:
        title = f"🚨 {service_name} trial ends today"
        notice = "The trial period ends today. Upgrade to the Hobby Plan to keep the service running."
    elif severity is Severity.WARNING:
        title = f"⚠️ {service_name} trial: {remaining_days} days left"
        notice = f"The trial ends in {remaining_days} days. Consider upgrading to the Hobby Plan to keep the service running."
    else:
        title = f"📢 {service_name} trial: {remaining_days} days left"
        notice = f"The trial ends in {remaining_days} days."

    return {
        "content": "@everyone",
        "embeds": [{
            "title": title,
            "color": severity.color,
            "fields": [
                {
                    "name": "Days remaining",
                    "value": f"{remaining_days} days",
                    "inline": True,
                },
                {
                    "name": "Current plan",
                    "value": "Trial Plan (free)",
                    "inline": True,
                },
                {
                    "name": "How to upgrade",
                    "value": (
                        f"1. Open [{service_name} Billing]({upgrade_url})\n"
                        "2. Click \"Unlock Hobby Plan\"\n"
                        "3. Enter your card details\n\n"
                        "**Hobby Plan: $5/month**"
                    ),
                    "inline": False,
                },
                {
                    "name": "💡 Notice",
                    "value": notice,
                    "inline": False,
                },
            ],
            "timestamp": timestamp.isoformat(),
            "footer": {"text": FOOTER_TEXT},
        }],
    }


def send_test_alert(webhook_url: str = None, dry_run: bool = False) -> bool:
    """
    Send a test message to verify the Discord webhook configuration.

    Args:
        webhook_url: Discord webhook URL (default: from env)
        dry_run: If True, print message instead of sending

    Returns:
        True if successful
    """
    if webhook_url is None:
        webhook_url = settings.DISCORD_WEBHOOK_URL

    message = {
        "content": "Test alert - keyword monitor configuration verified.",
        "embeds": [{
            "title": "✅ Webhook OK",
            "color": DETECTION_COLOR,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "footer": {"text": FOOTER_TEXT},
        }],
    }

    if dry_run:
        print(json.dumps(message, ensure_ascii=False, indent=2))
        return True

    if not webhook_url:
        logger.error("DISCORD_WEBHOOK_URL is not set")
        return False

    try:
        response = requests.post(webhook_url, json=message, timeout=settings.WEBHOOK_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else "unknown"
        logger.error(f"Discord HTTP error: {status_code}")
        return False
    except requests.exceptions.RequestException:
        # Don't log exception details, the URL carries the webhook token
        logger.error("Discord request failed")
        return False

    logger.info("Discord test alert sent successfully")
    return True
