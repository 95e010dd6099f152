#!/usr/bin/env python3
"""
Alta Parking Monitor - Main Entry Point
"""
import asyncio
import sys
from datetime import timedelta

import uvicorn
from loguru import logger

from parking_monitor.app.config import settings
from parking_monitor.app.schemas import MonitorConfig


def setup_logging():
    """Configure logging"""
    log_file = settings.logs_dir / "parking_monitor.log"
    settings.logs_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(sys.stderr, level="INFO")
    logger.add(
        log_file,
        rotation="10 MB",
        retention="7 days",
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
    )


def config_from_settings(target_date=None, interval_minutes=None) -> MonitorConfig:
    """Build a run config from .env / environment values"""
    interval = timedelta(minutes=interval_minutes) if interval_minutes else timedelta(
        seconds=settings.poll_interval_seconds
    )
    return MonitorConfig(
        email=settings.account_email,
        password=settings.account_password,
        season_pass=settings.season_pass,
        license_plate=settings.license_plate,
        target_date=target_date or settings.target_date,
        poll_interval=interval,
        browser_executable=settings.browser_executable,
    )


def run_api():
    """Run API server"""
    setup_logging()
    logger.info(f"Starting API server on {settings.api_host}:{settings.api_port}")

    uvicorn.run(
        "parking_monitor.app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


async def run_monitor(config: MonitorConfig) -> bool:
    """Run the poll loop until booked or interrupted"""
    from parking_monitor.automation.monitor import ParkingMonitor
    from parking_monitor.services.notification import NotificationService

    notification = NotificationService()
    monitor = ParkingMonitor(on_status=notification.handle_event)

    task = asyncio.create_task(monitor.start(config))
    try:
        result = await asyncio.shield(task)
    except asyncio.CancelledError:
        logger.info("Interrupted by user")
        monitor.request_stop()
        result = await task
    return result.booked


async def run_check(config: MonitorConfig) -> str:
    """Single availability check"""
    from parking_monitor.automation.monitor import ParkingMonitor

    outcome = await ParkingMonitor().check_once(config)
    return f"{outcome.kind.value} {outcome.detail}".strip()


def main():
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Alta Parking Monitor")
    parser.add_argument(
        "command",
        choices=["api", "monitor", "check"],
        help="Command to run: api (start API server), monitor (poll until booked), check (one attempt)",
    )
    parser.add_argument("--date", help="Target date (YYYY-MM-DD), overrides TARGET_DATE")
    parser.add_argument("--interval", type=float, help="Check interval in minutes")

    args = parser.parse_args()

    if args.command == "api":
        run_api()
        return

    setup_logging()
    config = config_from_settings(args.date, args.interval)
    missing = config.missing_fields()
    if missing:
        logger.error(f"Missing required config: {', '.join(missing)}")
        sys.exit(2)

    if args.command == "monitor":
        try:
            booked = asyncio.run(run_monitor(config))
        except KeyboardInterrupt:
            booked = False
        sys.exit(0 if booked else 1)
    elif args.command == "check":
        print(asyncio.run(run_check(config)))


if __name__ == "__main__":
    main()
