"""Tests for run input normalisation"""
from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from parking_monitor.app.schemas import MonitorConfig, MonitorStartRequest, StatusEvent, StatusKind


def test_fields_are_normalised():
    config = MonitorConfig(
        email="  skier@example.com ",
        password=" keep spaces ",
        season_pass=" abc123 ",
        license_plate="xyz 789",
        target_date="2027-01-01",
    )

    assert config.email == "skier@example.com"
    assert config.password == " keep spaces "
    assert config.season_pass == "ABC123"
    assert config.license_plate == "XYZ 789"
    assert config.target_date == date(2027, 1, 1)
    assert config.missing_fields() == []


def test_missing_fields_reported_in_order():
    config = MonitorConfig(email="a@b.c", password="", season_pass=" ", target_date="")
    assert config.missing_fields() == ["password", "season_pass", "license_plate", "target_date"]


def test_config_is_immutable():
    config = MonitorConfig(email="a@b.c")
    with pytest.raises(ValidationError):
        config.email = "other@b.c"


def test_password_hidden_from_repr():
    assert "s3cret" not in repr(MonitorConfig(password="s3cret"))


def test_start_request_builds_config():
    request = MonitorStartRequest(
        email="a@b.c",
        password="pw",
        season_pass="p1",
        license_plate="pl8",
        target_date="2027-02-14",
        interval_minutes=2,
    )
    config = request.to_config(browser_executable="")

    assert config.poll_interval == timedelta(minutes=2)
    assert config.browser_executable is None
    assert config.season_pass == "P1"


def test_status_event_serialises_kind():
    event = StatusEvent(kind=StatusKind.AVAILABLE, message="SPOT AVAILABLE")
    assert event.model_dump(mode="json")["kind"] == "available"
