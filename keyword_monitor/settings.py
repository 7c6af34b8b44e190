"""
Monitor Settings
================

Defaults for the keyword monitor. Every value can be overridden through the
environment (or a `.env` file in the project root).
"""

import os
from pathlib import Path

# Load .env file from project root
from dotenv import load_dotenv

_project_root = Path(__file__).parent.parent
_env_path = _project_root / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

# =============================================================================
# TARGET
# =============================================================================

TARGET_URL = "https://information-b.vercel.app/"
KEYWORD = "カルア"

# =============================================================================
# TIMING SETTINGS
# =============================================================================
# Hours are local to MONITOR_TIMEZONE.
#
# Schedule:
#   - One check at startup, then one every CHECK_INTERVAL_SECONDS
#   - Page checks only run inside [WINDOW_START_HOUR, WINDOW_END_HOUR)
#   - After a detection notification, checks pause for COOLDOWN_MINUTES

MONITOR_TIMEZONE = "Asia/Tokyo"

CHECK_INTERVAL_SECONDS = 60

WINDOW_START_HOUR = 14
WINDOW_END_HOUR = 20

COOLDOWN_MINUTES = 60

# =============================================================================
# BROWSER SETTINGS
# =============================================================================

HEADLESS_MODE = True
LAUNCH_TIMEOUT_SECONDS = 60
NAVIGATION_TIMEOUT_SECONDS = 30
SETTLE_DELAY_SECONDS = 3  # wait for client-side rendering after load

VIEWPORT = {"width": 1280, "height": 720}

# Not needed for text extraction
BLOCKED_RESOURCE_TYPES = ("image", "stylesheet", "font")

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
]

# Retry policy: wait 2s before attempt 2, 4s before attempt 3
MAX_FETCH_ATTEMPTS = 3
RETRY_BACKOFF_SECONDS = 2

# =============================================================================
# TRIAL EXPIRY SETTINGS
# =============================================================================

TRIAL_PERIOD_DAYS = 30
TRIAL_CHECK_HOUR = 14
TRIAL_SERVICE_NAME = "Railway.app"
TRIAL_UPGRADE_URL = "https://railway.app/account/billing"

# =============================================================================
# DISCORD SETTINGS
# =============================================================================

# Set via environment variables
DISCORD_WEBHOOK_URL = os.environ.get("DISCORD_WEBHOOK_URL", "")
TRIAL_START_DATE = os.environ.get("TRIAL_START_DATE", "")

WEBHOOK_TIMEOUT_SECONDS = 10
PAGE_EXCERPT_LENGTH = 500

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE", "logs/monitor.log")
