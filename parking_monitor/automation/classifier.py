"""
Page Classifier - Decides what the current page means

Nothing here clicks or types. Each call reads the live page again, since the
page changes between steps.
"""
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Pattern, Tuple

from ..app.config import (
    Selectors,
    SOLD_OUT_PATTERNS,
    CONFIRMATION_PATTERNS,
    UNAVAILABLE_CLASS_MARKERS,
)


class PageState(str, Enum):
    NEEDS_LOGIN = "needs_login"
    CALENDAR_SHOWING = "calendar_showing"
    DATE_SOLD_OUT = "date_sold_out"
    DATE_BOOKABLE = "date_bookable"
    DATE_ABSENT = "date_absent"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_UNCERTAIN = "booking_uncertain"


# ============== Text Rules ==============

def first_match(text: str, patterns: Iterable[Pattern]) -> Optional[str]:
    """Return the first phrase found in text, checking patterns in order"""
    for pattern in patterns:
        match = pattern.search(text or "")
        if match:
            return match.group(0)
    return None


def sold_out_phrase(text: str) -> Optional[str]:
    return first_match(text, SOLD_OUT_PATTERNS)


def is_confirmation_text(text: str) -> bool:
    return first_match(text, CONFIRMATION_PATTERNS) is not None


def matches_day(text: str, day: int) -> bool:
    """True if the trimmed cell text is exactly the day number.

    "1" matches "1" or " 1 " but never "12", "21" or a "12" cell that also says "1 left".
    """
    return (text or "").strip() == str(day)


def has_unavailable_marker(
    disabled: Optional[str],
    aria_disabled: Optional[str],
    class_name: Optional[str],
) -> bool:
    # a bare `disabled` attribute reads back as ""
    if disabled is not None:
        return True
    if (aria_disabled or "").strip().lower() == "true":
        return True
    classes = (class_name or "").lower()
    return any(marker in classes for marker in UNAVAILABLE_CLASS_MARKERS)


# ============== Page Rules ==============

async def detect_login(session) -> PageState:
    """NEEDS_LOGIN when a login button/link or an email field is showing"""
    if await session.query_one(Selectors.LOGIN_AFFORDANCE):
        return PageState.NEEDS_LOGIN
    if await session.query_one(Selectors.EMAIL_INPUT):
        return PageState.NEEDS_LOGIN
    return PageState.CALENDAR_SHOWING


async def find_date_cell(session, target: date):
    """Locate the calendar cell for target on the current calendar view"""
    cell = await session.query_one(Selectors.DATE_CELL.bind(iso=target.isoformat()))
    if cell:
        return cell

    async for element in session.query_all(Selectors.CALENDAR_DAY.bind(day=target.day)):
        text = await session.read_text(element)
        if matches_day(text, target.day):
            return element
    return None


async def classify_date(session, target: date) -> Tuple[PageState, Optional[object]]:
    """Classify the target date on the visible calendar.

    Returns (DATE_SOLD_OUT | DATE_BOOKABLE, cell) when the date is showing and
    (DATE_ABSENT, None) when the calendar has to be paged forward.
    """
    cell = await find_date_cell(session, target)
    if cell is None:
        return PageState.DATE_ABSENT, None

    unavailable = has_unavailable_marker(
        await session.read_attribute(cell, "disabled"),
        await session.read_attribute(cell, "aria-disabled"),
        await session.read_attribute(cell, "class"),
    )
    if unavailable:
        return PageState.DATE_SOLD_OUT, cell
    return PageState.DATE_BOOKABLE, cell


async def classify_confirmation(session) -> PageState:
    """Check the page after submitting a booking"""
    text = await session.page_text()
    if is_confirmation_text(text):
        return PageState.BOOKING_CONFIRMED
    return PageState.BOOKING_UNCERTAIN
