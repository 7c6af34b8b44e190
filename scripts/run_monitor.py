#!/usr/bin/env python3
"""
Keyword Monitor - CLI Entry Point
=================================

Runs the keyword monitor: checks the target page once at startup and then
every minute, inside the local monitoring window, and posts a Discord alert
when the keyword appears.

Usage:
    # Start monitor
    python scripts/run_monitor.py

    # Dry run (alerts logged to console, nothing sent to Discord)
    python scripts/run_monitor.py --dry-run

    # Single check and exit
    python scripts/run_monitor.py --once

    # Test Discord webhook configuration
    python scripts/run_monitor.py --test-webhook
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from keyword_monitor import Config, Monitor
from keyword_monitor.alerts import send_test_alert
from keyword_monitor.settings import LOG_FILE, LOG_LEVEL


def setup_logging(log_level: str = LOG_LEVEL, log_file: str = LOG_FILE):
    """Configure logging for the monitor service."""
    log_path = Path(log_file)
    if not log_path.is_absolute():
        log_path = project_root / log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Create date-stamped log file (e.g., logs/monitor_2026-01-18.log)
    date_str = datetime.now().strftime("%Y-%m-%d")
    dated_log_file = log_path.parent / f"{log_path.stem}_{date_str}{log_path.suffix}"

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # File handler (date-stamped)
    file_handler = logging.FileHandler(dated_log_file, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    for name in ("asyncio", "aiohttp", "urllib3", "requests"):
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(f"Logging to: {dated_log_file}")


def main():
    parser = argparse.ArgumentParser(
        description='Keyword Monitor',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  DISCORD_WEBHOOK_URL   Discord webhook for alerts (optional)
  TRIAL_START_DATE      Hosting trial start, YYYY-MM-DD (optional)
  MONITOR_TARGET_URL, MONITOR_KEYWORD, MONITOR_TIMEZONE,
  MONITOR_WINDOW_START_HOUR, MONITOR_WINDOW_END_HOUR,
  MONITOR_COOLDOWN_MINUTES, MONITOR_CHECK_INTERVAL_SECONDS

Examples:
  python scripts/run_monitor.py                 # Start monitor
  python scripts/run_monitor.py --dry-run       # Console alerts only
  python scripts/run_monitor.py --once          # One check, then exit
  python scripts/run_monitor.py --test-webhook  # Test Discord setup
        """
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Log alerts to console instead of sending to Discord'
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single check and exit'
    )

    parser.add_argument(
        '--test-webhook',
        action='store_true',
        help='Send a test alert to verify the Discord webhook'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=LOG_LEVEL.upper(),
        help=f'Log level (default: {LOG_LEVEL})'
    )

    args = parser.parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    if args.test_webhook:
        print("Testing Discord webhook configuration...")
        if send_test_alert(dry_run=args.dry_run):
            print("Test alert sent successfully!")
            sys.exit(0)
        print("Failed to send test alert. Check DISCORD_WEBHOOK_URL.")
        sys.exit(1)

    try:
        config = Config.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    config.dry_run = args.dry_run

    # Print configuration
    print("\n" + "=" * 60)
    print("KEYWORD MONITOR")
    print("=" * 60)
    print(f"Target:         {config.target_url}")
    print(f"Keyword:        {config.keyword}")
    print(f"Check interval: {config.check_interval_sec} seconds")
    print(f"Window:         {config.window.start_hour}:00-{config.window.end_hour}:00 ({config.timezone})")
    print(f"Cooldown:       {config.cooldown.duration.total_seconds() / 60:.0f} minutes")
    print(f"Trial reminder: {config.trial.start_date or 'disabled'}")
    print(f"Dry run:        {config.dry_run}")
    print("=" * 60)

    try:
        monitor = Monitor(config)

        print("\nStarting monitor...")
        print("Press Ctrl+C to stop\n")

        asyncio.run(monitor.run(once=args.once))

    except KeyboardInterrupt:
        print("\n\nMonitor stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Monitor error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
