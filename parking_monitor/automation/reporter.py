"""
Status Reporter - Delivers status events to the caller's sink
"""
import inspect
from typing import Callable, Optional
from loguru import logger

from ..app.schemas import StatusEvent, StatusKind


class StatusReporter:
    """Builds timestamped status events and hands them to a sink callback"""

    def __init__(self, sink: Optional[Callable] = None):
        self.sink = sink

    async def emit(self, kind: StatusKind, message: str) -> StatusEvent:
        event = StatusEvent(kind=kind, message=message)

        if kind is StatusKind.ERROR:
            logger.error(message)
        elif kind is StatusKind.SUCCESS:
            logger.success(message)
        else:
            logger.info(f"[{kind.value}] {message}")

        if self.sink:
            await self._call_sink(event)
        return event

    async def checking(self, message: str):
        return await self.emit(StatusKind.CHECKING, message)

    async def monitoring(self, message: str):
        return await self.emit(StatusKind.MONITORING, message)

    async def available(self, message: str):
        return await self.emit(StatusKind.AVAILABLE, message)

    async def success(self, message: str):
        return await self.emit(StatusKind.SUCCESS, message)

    async def error(self, message: str):
        return await self.emit(StatusKind.ERROR, message)

    async def _call_sink(self, event: StatusEvent):
        """Safely call sink function"""
        try:
            if inspect.iscoroutinefunction(self.sink):
                await self.sink(event)
            else:
                self.sink(event)
        except Exception as e:
            logger.error(f"Status sink error: {e}")
