"""
Monitor Errors - failure kinds raised inside the automation layer
"""


class MonitorError(Exception):
    """Base class for monitor failures"""


class ConfigInvalid(MonitorError):
    """Required run input is missing; the run is never started"""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing required config: {', '.join(self.missing)}")


class TransientError(MonitorError):
    """Network, timeout or page failure; retried on the next poll tick"""


class LaunchError(TransientError):
    """Browser process could not be started"""


class BookingIncomplete(MonitorError):
    """A bookable spot was found but the booking could not be confirmed"""
