"""
Booking Automation - One check-and-book attempt against the reservation site
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from loguru import logger

from ..app.config import settings as default_settings, Settings, Selectors
from ..app.schemas import MonitorConfig
from .browser import BrowserManager, BrowserSession
from .classifier import (
    PageState,
    detect_login,
    classify_date,
    classify_confirmation,
    sold_out_phrase,
)
from .errors import BookingIncomplete, TransientError
from .login import LoginAutomation
from .reporter import StatusReporter


class OutcomeKind(str, Enum):
    SOLD_OUT = "sold_out"
    NOT_FOUND = "not_found"
    BOOKED = "booked"
    BOOKING_FAILED = "booking_failed"
    TRANSIENT_ERROR = "transient_error"


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of a single attempt"""
    kind: OutcomeKind
    detail: str = ""

    @classmethod
    def sold_out(cls, detail: str = ""):
        return cls(OutcomeKind.SOLD_OUT, detail)

    @classmethod
    def not_found(cls, detail: str = ""):
        return cls(OutcomeKind.NOT_FOUND, detail)

    @classmethod
    def booked(cls, detail: str = ""):
        return cls(OutcomeKind.BOOKED, detail)

    @classmethod
    def booking_failed(cls, detail: str = ""):
        return cls(OutcomeKind.BOOKING_FAILED, detail)

    @classmethod
    def transient_error(cls, detail: str = ""):
        return cls(OutcomeKind.TRANSIENT_ERROR, detail)


class BookingAutomation:
    """Handles login, calendar navigation, availability check and booking"""

    def __init__(self, browser: Optional[BrowserManager] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.browser = browser or BrowserManager(self.settings)
        self.login = LoginAutomation(self.settings)

    async def attempt(self, config: MonitorConfig, reporter: Optional[StatusReporter] = None) -> AttemptOutcome:
        """Run one full attempt in a fresh browser session.

        Never raises: every failure is folded into the returned outcome and
        the session is closed before returning.
        """
        reporter = reporter or StatusReporter()
        target = config.target_date.isoformat()
        await reporter.checking(f"Checking availability for {target}...")

        try:
            async with self.browser.session(config.browser_executable) as session:
                if session.used_fallback:
                    await reporter.error("Failed to launch configured browser, using default Chromium...")
                try:
                    return await self._run_steps(session, config, reporter)
                except BookingIncomplete as e:
                    await self._capture(session, "booking_incomplete")
                    return AttemptOutcome.booking_failed(str(e))
                except Exception:
                    await self._capture(session, "attempt_error")
                    raise
        except TransientError as e:
            logger.warning(f"Attempt failed: {e}")
            return AttemptOutcome.transient_error(str(e))
        except Exception as e:
            logger.exception("Unexpected error during attempt")
            return AttemptOutcome.transient_error(f"Unexpected error: {e}")

    async def _run_steps(self, session: BrowserSession, config: MonitorConfig, reporter: StatusReporter) -> AttemptOutcome:
        target = config.target_date.isoformat()

        # Step 1: Load the site
        await session.navigate(self.settings.reservation_url, wait_until="networkidle")
        await session.settle(self.settings.settle_ms)

        # Step 2: Login if asked
        if await detect_login(session) is PageState.NEEDS_LOGIN:
            await reporter.checking("Logging in...")
            await self.login.login(session, config.email, config.password)

        # Step 3: Page the calendar to the target date
        await reporter.checking("Looking for target date...")
        for page_number in range(self.settings.max_calendar_pages):
            state, cell = await classify_date(session, config.target_date)

            if state is PageState.DATE_SOLD_OUT:
                await reporter.checking(f"{target} found but SOLD OUT")
                return AttemptOutcome.sold_out("date cell marked unavailable")

            if state is PageState.DATE_BOOKABLE:
                await reporter.checking(f"Found {target} - selecting...")
                await session.click(cell)
                await session.settle(self.settings.settle_ms)
                break

            next_month = await session.query_one(Selectors.NEXT_MONTH)
            if next_month:
                logger.debug(f"{target} not on calendar page {page_number + 1}, paging forward")
                await session.click(next_month)
            else:
                # calendar may still be rendering; look again after the settle
                logger.debug(f"{target} not on calendar and no next-month control yet")
            await session.settle(self.settings.calendar_settle_ms)
        else:
            logger.info(f"{target} not found within {self.settings.max_calendar_pages} calendar pages")

        # Step 4: Page-wide sold out wording
        phrase = sold_out_phrase(await session.page_text())
        if phrase:
            await reporter.checking(f"{target}: No parking available")
            return AttemptOutcome.sold_out(f"page says '{phrase}'")

        # Step 5: Booking button
        book_button = await session.query_one(Selectors.BOOKING_AFFORDANCE)
        if not book_button:
            await reporter.checking(f"No parking available for {target}")
            return AttemptOutcome.not_found("no booking button")

        # Step 6: Fill the booking form
        await reporter.available(f"SPOT AVAILABLE for {target}! Attempting to book...")
        await session.click(book_button)
        await session.settle(self.settings.settle_ms)

        pass_input = await session.query_one(Selectors.SEASON_PASS_INPUT)
        if pass_input:
            await session.fill(pass_input, config.season_pass)
            await reporter.available("Entered season pass...")

        plate_input = await session.query_one(Selectors.LICENSE_PLATE_INPUT)
        if plate_input:
            await session.fill(plate_input, config.license_plate)
            await reporter.available("Entered license plate...")

        confirm_button = await session.query_one(Selectors.CONFIRM_AFFORDANCE)
        if not confirm_button:
            raise BookingIncomplete("confirm button not found")

        # Step 7: Submit and verify
        await reporter.available("Submitting booking...")
        await session.click(confirm_button)
        await session.settle(self.settings.confirm_settle_ms)

        if await classify_confirmation(session) is PageState.BOOKING_CONFIRMED:
            logger.info(f"Booking confirmed for {target}")
            return AttemptOutcome.booked()

        raise BookingIncomplete("no confirmation message after submitting")

    async def _capture(self, session: BrowserSession, name: str):
        if self.settings.screenshot_on_error:
            await session.screenshot(name)
