"""
Shared fixtures: an in-memory stand-in for the browser session
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

import pytest

from parking_monitor.app.config import Settings
from parking_monitor.app.schemas import MonitorConfig
from parking_monitor.automation.booking import AttemptOutcome
from parking_monitor.automation.errors import TransientError


TARGET = date(2027, 1, 1)


@dataclass
class FakeElement:
    text: str = ""
    attrs: Dict[str, str] = field(default_factory=dict)
    goto: Optional[str] = None
    clicks: int = 0
    value: Optional[str] = None


@dataclass
class FakeScreen:
    elements: Dict[str, List[FakeElement]] = field(default_factory=dict)
    text: str = ""


class FakeSession:
    """Implements the BrowserSession API over a dict of screens"""

    def __init__(self, screens: Dict[str, FakeScreen], start: str = "home", used_fallback: bool = False):
        self.screens = screens
        self.current = start
        self.used_fallback = used_fallback
        self.visited: List[str] = []
        self.fail_navigation: Optional[str] = None
        self.screenshots: List[str] = []

    @property
    def screen(self) -> FakeScreen:
        return self.screens[self.current]

    def _candidates(self, selectors) -> List[FakeElement]:
        elements = self.screen.elements.get(selectors.name, [])
        if selectors.name == "date_cell":
            return [
                el for el in elements
                if any(f"'{el.attrs.get('data-date')}'" in s for s in selectors.selectors)
            ]
        return elements

    async def navigate(self, url, wait_until="networkidle"):
        if self.fail_navigation:
            raise TransientError(self.fail_navigation)
        self.visited.append(url)

    async def wait_ready(self, state="networkidle"):
        pass

    async def settle(self, ms):
        await asyncio.sleep(0)

    async def query_one(self, selectors):
        candidates = self._candidates(selectors)
        return candidates[0] if candidates else None

    async def query_all(self, selectors):
        for element in list(self._candidates(selectors)):
            yield element

    async def read_text(self, element):
        return element.text

    async def read_attribute(self, element, name):
        return element.attrs.get(name)

    async def click(self, element):
        element.clicks += 1
        if element.goto:
            self.current = element.goto

    async def fill(self, element, value):
        element.value = value

    async def page_text(self):
        return self.screen.text

    async def screenshot(self, name="screenshot"):
        self.screenshots.append(name)


class FakeBrowser:
    """Stands in for BrowserManager and counts sessions"""

    def __init__(self, session_factory: Callable[[], FakeSession], launch_error: Optional[Exception] = None):
        self.session_factory = session_factory
        self.launch_error = launch_error
        self.opened = 0
        self.closed = 0
        self.executables: List[Optional[str]] = []
        self.last_session: Optional[FakeSession] = None

    @asynccontextmanager
    async def session(self, executable_path=None):
        self.executables.append(executable_path)
        if self.launch_error:
            raise self.launch_error
        self.opened += 1
        self.last_session = self.session_factory()
        try:
            yield self.last_session
        finally:
            self.closed += 1


class FakeBooking:
    """Stands in for BookingAutomation with scripted outcomes"""

    def __init__(self, outcomes: List[AttemptOutcome], gate: Optional[asyncio.Event] = None):
        self.outcomes = list(outcomes)
        self.gate = gate
        self.calls = 0
        self.completed = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def attempt(self, config, reporter=None):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
            self.completed += 1
            return outcome
        finally:
            self.in_flight -= 1


async def wait_until(predicate, timeout: float = 2.0):
    """Yield to the loop until predicate() holds"""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        settle_ms=0,
        login_click_settle_ms=0,
        login_submit_settle_ms=0,
        calendar_settle_ms=0,
        confirm_settle_ms=0,
        min_poll_interval_seconds=0,
        max_poll_interval_seconds=3600,
        screenshot_on_error=True,
        telegram_bot_token=None,
        telegram_chat_id=None,
        smtp_user=None,
        smtp_password=None,
        base_dir=tmp_path,
    )


@pytest.fixture
def make_config():
    def _make(**overrides):
        values = dict(
            email="skier@example.com",
            password="s3cret",
            season_pass="abc123",
            license_plate="xyz 789",
            target_date=TARGET,
            poll_interval=timedelta(seconds=30),
        )
        values.update(overrides)
        return MonitorConfig(**values)
    return _make


@pytest.fixture
def events():
    """Collected status events; pass events.append as the sink"""
    return []
