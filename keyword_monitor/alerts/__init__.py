"""
Alerts Package
==============

Discord webhook notifications.
"""

from .discord import (
    AlertConfig,
    DiscordWebhook,
    NotificationDeliveryError,
    Severity,
    build_detection_message,
    build_trial_message,
    send_test_alert,
)

__all__ = [
    "AlertConfig",
    "DiscordWebhook",
    "NotificationDeliveryError",
    "Severity",
    "build_detection_message",
    "build_trial_message",
    "send_test_alert",
]
