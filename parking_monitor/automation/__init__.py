"""
Alta Parking Monitor - Automation Package
"""
from .browser import BrowserManager, BrowserSession
from .login import LoginAutomation
from .booking import BookingAutomation, AttemptOutcome, OutcomeKind
from .classifier import PageState
from .monitor import ParkingMonitor, MonitorState, CancellationToken

__all__ = [
    "BrowserManager",
    "BrowserSession",
    "LoginAutomation",
    "BookingAutomation",
    "AttemptOutcome",
    "OutcomeKind",
    "PageState",
    "ParkingMonitor",
    "MonitorState",
    "CancellationToken",
]
