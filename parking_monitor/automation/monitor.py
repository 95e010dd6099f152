"""
Parking Monitor - Polls for the target date and books it when it opens up
"""
import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, Optional, Set, Tuple
from loguru import logger

from ..app.config import settings as default_settings, Settings
from ..app.schemas import MonitorConfig, RunResult
from .booking import AttemptOutcome, BookingAutomation, OutcomeKind
from .errors import ConfigInvalid
from .reporter import StatusReporter


class MonitorState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    ATTEMPTING = "attempting"
    STOPPED = "stopped"


class CancellationToken:
    """Stop signal for one run: set once, observed by the loop and its sleeps"""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        self._event.set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to seconds; returns True if cancelled before the time ran out"""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=max(seconds, 0))
        except asyncio.TimeoutError:
            return False
        return True


@dataclass
class RunHandle:
    """State owned by a single run of the poll loop"""
    config: MonitorConfig
    interval: float
    token: CancellationToken = field(default_factory=CancellationToken)
    finished: asyncio.Event = field(default_factory=asyncio.Event)
    state: MonitorState = MonitorState.IDLE
    attempts: int = 0
    last_check: Optional[datetime] = None
    last_outcome: Optional[AttemptOutcome] = None


def _format_interval(seconds: float) -> str:
    if seconds >= 60:
        minutes = round(seconds / 60)
        return f"{minutes} minute(s)"
    return f"{seconds:g} second(s)"


class ParkingMonitor:
    """Runs at most one poll loop at a time"""

    def __init__(
        self,
        booking: Optional[BookingAutomation] = None,
        settings: Optional[Settings] = None,
        on_status: Optional[Callable] = None,
    ):
        self.settings = settings or default_settings
        self.booking = booking or BookingAutomation(settings=self.settings)
        self.on_status = on_status

        self._run: Optional[RunHandle] = None
        self._pending: Set[CancellationToken] = set()
        self._start_lock = asyncio.Lock()
        self._booked: Set[Tuple[str, date]] = set()

    @property
    def state(self) -> MonitorState:
        return self._run.state if self._run else MonitorState.IDLE

    @property
    def is_running(self) -> bool:
        return self.state in (MonitorState.POLLING, MonitorState.ATTEMPTING)

    @property
    def stats(self) -> Dict:
        run = self._run
        return {
            "state": self.state.value,
            "target_date": run.config.target_date if run else None,
            "attempts": run.attempts if run else 0,
            "last_check": run.last_check if run else None,
            "last_outcome": run.last_outcome.kind.value if run and run.last_outcome else None,
        }

    def validate(self, config: MonitorConfig):
        """Raises ConfigInvalid if a required field is empty"""
        missing = config.missing_fields()
        if missing:
            raise ConfigInvalid(missing)

    def bounded_interval(self, config: MonitorConfig) -> float:
        requested = config.poll_interval.total_seconds()
        interval = min(
            max(requested, self.settings.min_poll_interval_seconds),
            self.settings.max_poll_interval_seconds,
        )
        if interval != requested:
            logger.warning(f"Poll interval {requested:g}s clamped to {interval:g}s")
        return interval

    async def start(self, config: MonitorConfig, on_status: Optional[Callable] = None) -> RunResult:
        """
        Poll until the date is booked or stop is requested

        Any run already in progress is stopped first and this call waits for
        it to finish before the new run begins.

        Args:
            config: Account, vehicle and date to book
            on_status: Callback receiving StatusEvent values (overrides the default sink)

        Returns:
            RunResult, booked=True only after a confirmed booking
        """
        reporter = StatusReporter(on_status or self.on_status)

        # request_stop can see this token while we wait for the lock or the old run
        token = CancellationToken()
        self._pending.add(token)
        try:
            async with self._start_lock:
                await self._stop_active_run()

                if token.cancelled:
                    await reporter.monitoring("Monitor stopped before it started")
                    return RunResult(booked=False)

                try:
                    self.validate(config)
                except ConfigInvalid as e:
                    await reporter.error(str(e))
                    return RunResult(booked=False)

                target = config.target_date.isoformat()
                if self._booking_key(config) in self._booked:
                    await reporter.success(f"Parking for {target} is already booked")
                    return RunResult(booked=True)

                run = RunHandle(config=config, interval=self.bounded_interval(config), token=token)
                run.state = MonitorState.POLLING
                self._run = run
        finally:
            self._pending.discard(token)

        try:
            return await self._poll(run, reporter)
        finally:
            run.state = MonitorState.STOPPED
            run.finished.set()
            logger.info("Monitor stopped")

    async def _poll(self, run: RunHandle, reporter: StatusReporter) -> RunResult:
        target = run.config.target_date.isoformat()
        every = _format_interval(run.interval)
        await reporter.monitoring(f"Starting monitor for {target} (checking every {every})")

        while not run.token.cancelled:
            run.state = MonitorState.ATTEMPTING
            run.attempts += 1
            run.last_check = datetime.now()
            logger.info(f"Check #{run.attempts} at {run.last_check:%H:%M:%S}")

            # an in-flight attempt always runs to completion
            outcome = await self.booking.attempt(run.config, reporter)
            run.last_outcome = outcome
            run.state = MonitorState.POLLING

            if outcome.kind is OutcomeKind.BOOKED:
                self._booked.add(self._booking_key(run.config))
                await reporter.success(f"Successfully booked parking for {target}!")
                return RunResult(booked=True)

            if outcome.kind in (OutcomeKind.SOLD_OUT, OutcomeKind.NOT_FOUND):
                await reporter.monitoring(f"No availability for {target}. Next check in {every}...")
            elif outcome.kind is OutcomeKind.BOOKING_FAILED:
                await reporter.error(
                    f"Spot was available but auto-booking may have failed ({outcome.detail}). Check manually!"
                )
            else:
                await reporter.error(f"Error during check: {outcome.detail}. Retrying in {every}...")

            if await run.token.sleep(run.interval):
                break

        await reporter.monitoring("Monitor stopped")
        return RunResult(booked=False)

    def request_stop(self):
        """Ask the active run, and any start still waiting to begin, to stop; safe to call at any time"""
        for token in self._pending:
            token.cancel()

        run = self._run
        if run and not run.token.cancelled and not run.finished.is_set():
            logger.info("Stopping monitor...")
            run.token.cancel()

    async def wait_stopped(self):
        run = self._run
        if run:
            await run.finished.wait()

    async def _stop_active_run(self):
        run = self._run
        if run and not run.finished.is_set():
            logger.info("Stopping previous run before starting a new one")
            run.token.cancel()
            await run.finished.wait()

    async def check_once(self, config: MonitorConfig, on_status: Optional[Callable] = None) -> AttemptOutcome:
        """Single attempt outside the poll loop"""
        if self.is_running:
            raise RuntimeError("Monitor is running; stop it before a single check")
        self.validate(config)
        return await self.booking.attempt(config, StatusReporter(on_status or self.on_status))

    @staticmethod
    def _booking_key(config: MonitorConfig) -> Tuple[str, date]:
        return config.email.lower(), config.target_date
