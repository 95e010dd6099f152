"""
Configuration settings for Alta Parking Monitor
"""
import re
from dataclasses import dataclass
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, Tuple
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Reservation site
    reservation_url: str = Field(
        default="https://reserve.altaparking.com",
        description="Parking reservation site"
    )

    # Account details for unattended runs (CLI / API defaults)
    account_email: str = Field(default="", description="Reservation account email")
    account_password: str = Field(default="", description="Reservation account password")
    season_pass: str = Field(default="", description="Season pass code")
    license_plate: str = Field(default="", description="Vehicle license plate")
    target_date: str = Field(default="", description="Date to book (YYYY-MM-DD)")

    # Telegram Notifications
    telegram_bot_token: Optional[str] = Field(default=None, description="Telegram bot token")
    telegram_chat_id: Optional[str] = Field(default=None, description="Telegram chat ID")

    # Email Notifications
    smtp_host: str = Field(default="smtp.gmail.com", description="SMTP server host")
    smtp_port: int = Field(default=587, description="SMTP server port")
    smtp_user: Optional[str] = Field(default=None, description="SMTP username")
    smtp_password: Optional[str] = Field(default=None, description="SMTP password")

    # Polling
    poll_interval_seconds: float = Field(default=300, description="Availability check interval in seconds")
    min_poll_interval_seconds: float = Field(default=60, description="Lowest accepted check interval")
    max_poll_interval_seconds: float = Field(default=3600, description="Highest accepted check interval")

    # Browser
    headless: bool = Field(default=True, description="Run browser in headless mode")
    browser_executable: Optional[str] = Field(default=None, description="Chromium executable to try first")
    navigation_timeout_ms: int = Field(default=30000, description="Timeout for page loads")
    action_timeout_ms: int = Field(default=10000, description="Timeout for element queries and actions")
    settle_ms: int = Field(default=2000, description="Pause after navigation or date selection")
    login_click_settle_ms: int = Field(default=1500, description="Pause after opening the login form")
    login_submit_settle_ms: int = Field(default=3000, description="Pause after submitting credentials")
    calendar_settle_ms: int = Field(default=1000, description="Pause after paging the calendar")
    confirm_settle_ms: int = Field(default=3000, description="Pause after submitting the booking")
    max_calendar_pages: int = Field(default=12, description="Calendar months to page through")
    screenshot_on_error: bool = Field(default=True, description="Capture screenshot on error")

    # API Server
    api_host: str = Field(default="127.0.0.1", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # Paths
    base_dir: Path = Field(default=Path(__file__).parent.parent.parent, description="Base directory")

    @property
    def screenshots_dir(self) -> Path:
        return self.base_dir / "data" / "screenshots"

    @property
    def logs_dir(self) -> Path:
        return self.base_dir / "data" / "logs"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@dataclass(frozen=True)
class SelectorSet:
    """Prioritised selectors for one semantic kind of element"""
    name: str
    selectors: Tuple[str, ...]

    def bind(self, **values) -> "SelectorSet":
        """Fill {placeholders} such as {iso} or {day}"""
        return SelectorSet(self.name, tuple(s.format(**values) for s in self.selectors))

    def __iter__(self):
        return iter(self.selectors)


# Semantic element classes for the reservation site
class Selectors:
    """Selector table, tried in order until one matches"""

    # Login
    LOGIN_AFFORDANCE = SelectorSet("login_affordance", (
        "button:has-text('Log In')",
        "a:has-text('Log In')",
        "button:has-text('Sign In')",
        "a:has-text('Sign In')",
    ))
    EMAIL_INPUT = SelectorSet("email_input", (
        "input[type='email']",
        "input[name='email']",
    ))
    PASSWORD_INPUT = SelectorSet("password_input", (
        "input[type='password']",
        "input[name='password']",
    ))
    LOGIN_SUBMIT = SelectorSet("login_submit", (
        "button[type='submit']",
        "button:has-text('Log In')",
        "button:has-text('Sign In')",
    ))

    # Calendar
    DATE_CELL = SelectorSet("date_cell", (
        "[data-date='{iso}']",
        "[aria-label*='{iso}']",
    ))
    CALENDAR_DAY = SelectorSet("calendar_day", (
        "button:has-text('{day}')",
        "td:has-text('{day}')",
        ".day:has-text('{day}')",
    ))
    NEXT_MONTH = SelectorSet("next_month", (
        "[aria-label='Next month']",
        ".next-month",
        "button:has-text('Next')",
        "button:has-text('>')",
    ))

    # Booking form
    BOOKING_AFFORDANCE = SelectorSet("booking_affordance", (
        "button:has-text('Reserve')",
        "button:has-text('Book')",
        "button:has-text('Add to Cart')",
        "button:has-text('Select')",
    ))
    SEASON_PASS_INPUT = SelectorSet("season_pass_input", (
        "input[name*='pass']:not([type='password'])",
        "input[placeholder*='pass' i]:not([type='password'])",
        "input[name*='code']",
    ))
    LICENSE_PLATE_INPUT = SelectorSet("license_plate_input", (
        "input[name*='plate']",
        "input[name*='license']",
        "input[placeholder*='plate' i]",
    ))
    CONFIRM_AFFORDANCE = SelectorSet("confirm_affordance", (
        "button:has-text('Confirm')",
        "button:has-text('Complete')",
        "button:has-text('Submit')",
        "button[type='submit']",
    ))


# Page text that means the date cannot be booked
SOLD_OUT_PATTERNS = (
    re.compile(r"sold[\s_-]*out", re.IGNORECASE),
    re.compile(r"no\s*(spots?|parking|spaces?)\s*(are\s*)?available", re.IGNORECASE),
    re.compile(r"fully[\s_-]*booked", re.IGNORECASE),
    re.compile(r"unavailable", re.IGNORECASE),
    re.compile(r"wait[\s_-]*list", re.IGNORECASE),
)

# Page text that means the reservation went through
CONFIRMATION_PATTERNS = (
    re.compile(r"thank\s*you", re.IGNORECASE),
    re.compile(r"confirm(ed|ation)", re.IGNORECASE),
    re.compile(r"success", re.IGNORECASE),
    re.compile(r"booked", re.IGNORECASE),
    re.compile(r"reserved", re.IGNORECASE),
)

# Class name fragments marking a calendar cell as not selectable
UNAVAILABLE_CLASS_MARKERS = (
    "disabled",
    "sold-out",
    "soldout",
    "unavailable",
)


# Global settings instance
settings = Settings()
