"""
Pydantic schemas for monitor input, status events and API responses
"""
from datetime import datetime, date, timedelta
from enum import Enum
from typing import ClassVar, Optional, List, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============== Monitor Input ==============

class MonitorConfig(BaseModel):
    """Everything one monitoring run needs, fixed for the life of the run"""
    model_config = ConfigDict(frozen=True)

    email: str = ""
    password: str = Field(default="", repr=False)
    season_pass: str = ""
    license_plate: str = ""
    target_date: Optional[date] = None
    poll_interval: timedelta = timedelta(minutes=5)
    browser_executable: Optional[str] = None

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("email", "password", "season_pass", "license_plate", "target_date")

    @field_validator("email", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("season_pass", "license_plate", mode="before")
    @classmethod
    def _strip_upper(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("target_date", mode="before")
    @classmethod
    def _blank_date(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("browser_executable", mode="before")
    @classmethod
    def _blank_path(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def missing_fields(self) -> List[str]:
        """Names of required fields that are empty or whitespace"""
        missing = []
        for name in self.REQUIRED_FIELDS:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing


# ============== Status Events ==============

class StatusKind(str, Enum):
    """Kinds of status lines sent to the observer"""
    CHECKING = "checking"
    MONITORING = "monitoring"
    AVAILABLE = "available"
    SUCCESS = "success"
    ERROR = "error"


class StatusEvent(BaseModel):
    """One human-readable progress line"""
    model_config = ConfigDict(frozen=True)

    kind: StatusKind
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)


class RunResult(BaseModel):
    """Final result of a monitoring run"""
    booked: bool = False


# ============== API Schemas ==============

class MonitorStartRequest(BaseModel):
    """Schema for starting a monitoring run"""
    email: str = ""
    password: str = ""
    season_pass: str = ""
    license_plate: str = ""
    target_date: Optional[date] = None
    interval_minutes: float = Field(default=5, gt=0)

    def to_config(self, browser_executable: Optional[str] = None) -> MonitorConfig:
        return MonitorConfig(
            email=self.email,
            password=self.password,
            season_pass=self.season_pass,
            license_plate=self.license_plate,
            target_date=self.target_date,
            poll_interval=timedelta(minutes=self.interval_minutes),
            browser_executable=browser_executable,
        )


class MonitorStatusResponse(BaseModel):
    """Schema for monitor status response"""
    state: str
    target_date: Optional[date]
    attempts: int
    last_check: Optional[datetime]
    last_outcome: Optional[str]


class MonitorActionResponse(BaseModel):
    """Schema for start/stop responses"""
    message: str
    state: str
