"""
Keyword Monitor
===============

Watches a single web page and posts a Discord alert when a keyword appears.

Components:
- core/monitor.py: Monitor service (tick sequencing, retry, scheduling)
- core/gate.py: Time-of-day window and notification cooldown
- core/detector.py: Rising-edge keyword detection
- core/trial.py: Daily hosting-trial expiry reminders
- scrapers/page.py: Playwright page text fetcher
- alerts/discord.py: Discord webhook alerts
"""

from .config import Config
from .core import Monitor, TickOutcome

__all__ = [
    "Config",
    "Monitor",
    "TickOutcome",
]
