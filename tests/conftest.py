"""Shared fixtures for Tempest tests."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tempest.alerters import BaseAlerter, MultiChannelAlerter
from tempest_common.store import (
    ComparisonOperator,
    DeliveryResult,
    NotificationOutcome,
    NotificationType,
    Reading,
    Station,
    WeatherAlert,
    WeatherMetric,
    WeatherStore,
)

T0 = datetime(2024, 7, 1, 14, 0, 0)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, minutes=0, hours=0, days=0):
        self.now += timedelta(minutes=minutes, hours=hours, days=days)
        return self.now


class RecordingAlerter(BaseAlerter):
    """Alerter that records sends and returns a canned result."""

    def __init__(self, channel, success=True, error=None, raises=None):
        super().__init__()
        self.channel = channel
        self.success = success
        self.error = error
        self.raises = raises
        self.sent = []

    def send_alert(self, alert, reading, actual_value):
        if self.raises is not None:
            raise self.raises
        self.sent.append((alert.id, reading.id, actual_value))
        return self._record(DeliveryResult(self.channel, self.success, self.error))


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(tmp_path):
    """Create a temporary database."""
    return WeatherStore(str(tmp_path / "test_weather.db"))


@pytest.fixture
def email_alerter():
    return RecordingAlerter("email")


@pytest.fixture
def sms_alerter():
    return RecordingAlerter("sms")


@pytest.fixture
def alerter(email_alerter, sms_alerter):
    return MultiChannelAlerter(email=email_alerter, sms=sms_alerter)


@pytest.fixture
def station(store):
    return store.save_station(Station(station_id="ST1", name="Back Garden"))


def make_alert(**overrides):
    """Unsaved alert: temperature > 30 on ST1, email, 60 minute cooldown."""
    fields = dict(
        name="Heat",
        station_id="ST1",
        metric=WeatherMetric.TEMPERATURE,
        operator=ComparisonOperator.GREATER_THAN,
        threshold=30.0,
        notification_type=NotificationType.EMAIL,
        user_email="user@example.com",
        user_phone="+15551234567",
        cooldown_minutes=60,
    )
    fields.update(overrides)
    return WeatherAlert(**fields)


def make_reading(station_id="ST1", timestamp=T0, **values):
    return Reading(station_id=station_id, timestamp=timestamp, created_at=timestamp, **values)


def add_history(store, alert, triggered_at, outcome=None, actual_value=32.0):
    """Trigger a saved alert at triggered_at and record a delivered email."""
    if outcome is None:
        outcome = NotificationOutcome(email=DeliveryResult("email", True))
    reading = store.insert_reading(make_reading(alert.station_id, triggered_at, temperature=actual_value))
    claimed = store.record_trigger(alert.id, reading, actual_value, triggered_at)
    assert claimed is not None, "alert is cooling down"
    return store.complete_trigger(claimed[1], outcome)
