"""
FastAPI Application - Alta Parking Monitor control API
"""
import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import FastAPI, HTTPException, status
from loguru import logger

from .config import settings
from . import schemas
from ..automation.monitor import ParkingMonitor
from ..services.notification import NotificationService


# ============== Shell State ==============

class EventLog:
    """Keeps the most recent status events for polling clients"""

    def __init__(self, maxlen: int = 500):
        self._events = deque(maxlen=maxlen)
        self._seq = 0

    def append(self, event: schemas.StatusEvent):
        self._seq += 1
        self._events.append((self._seq, event))

    def since(self, seq: int = 0) -> List[dict]:
        return [
            {"seq": n, **event.model_dump(mode="json")}
            for n, event in self._events
            if n > seq
        ]


event_log = EventLog()
notifications = NotificationService()


async def status_sink(event: schemas.StatusEvent):
    event_log.append(event)
    await notifications.handle_event(event)


monitor = ParkingMonitor(on_status=status_sink)
_run_task: Optional[asyncio.Task] = None


def _log_run_failure(task: asyncio.Task):
    """Done callback: surface crashes of the background run"""
    if task.cancelled():
        return
    error = task.exception()
    if error:
        logger.opt(exception=error).error(f"Monitor run crashed: {error}")


# ============== Lifespan ==============

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("Starting Alta Parking Monitor API...")
    settings.screenshots_dir.mkdir(parents=True, exist_ok=True)
    settings.logs_dir.mkdir(parents=True, exist_ok=True)

    yield

    logger.info("Shutting down Alta Parking Monitor API...")
    monitor.request_stop()
    await monitor.wait_stopped()


# ============== App Instance ==============

app = FastAPI(
    title="Alta Parking Monitor API",
    description="Start, stop and follow the parking availability monitor",
    version="1.0.0",
    lifespan=lifespan,
)


# ============== Monitor Routes ==============

@app.post(
    "/api/monitor/start",
    response_model=schemas.MonitorActionResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_monitor(request: schemas.MonitorStartRequest):
    """Start monitoring; replaces any run in progress"""
    global _run_task

    config = request.to_config(browser_executable=settings.browser_executable)
    missing = config.missing_fields()
    if missing:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Missing required config: {', '.join(missing)}",
        )

    _run_task = asyncio.create_task(monitor.start(config))
    _run_task.add_done_callback(_log_run_failure)
    return schemas.MonitorActionResponse(
        message=f"Monitoring {config.target_date.isoformat()}",
        state=monitor.state.value,
    )


@app.post("/api/monitor/stop", response_model=schemas.MonitorActionResponse)
async def stop_monitor():
    """Stop monitoring (no-op when nothing is running)"""
    monitor.request_stop()
    return schemas.MonitorActionResponse(message="Stop requested", state=monitor.state.value)


@app.get("/api/monitor/status", response_model=schemas.MonitorStatusResponse)
async def get_monitor_status():
    """Get current monitor status"""
    return schemas.MonitorStatusResponse(**monitor.stats)


@app.get("/api/monitor/events")
async def get_monitor_events(since: int = 0):
    """Status events newer than the given sequence number"""
    return event_log.since(since)


# ============== Health Check ==============

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "version": "1.0.0"}
