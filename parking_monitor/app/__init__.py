"""
Alta Parking Monitor - Application Package
"""
from .config import settings, Settings, Selectors, SelectorSet
from .schemas import MonitorConfig, StatusEvent, StatusKind, RunResult

__all__ = [
    "settings",
    "Settings",
    "Selectors",
    "SelectorSet",
    "MonitorConfig",
    "StatusEvent",
    "StatusKind",
    "RunResult",
]
