"""Persistent storage for stations, readings, alerts and trigger history.

Provides SQLite-backed storage for:
- Station registry and last-seen tracking
- Immutable weather readings
- Alert rules with their cooldown state
- Audit trail of every alert trigger and its notification outcome
"""

from .models import (
    UNIT_SYSTEMS,
    ComparisonOperator,
    DeliveryResult,
    DeliveryStatus,
    NotificationOutcome,
    NotificationType,
    Reading,
    Station,
    TriggerEvent,
    WeatherAlert,
    WeatherMetric,
    WeatherStats,
    celsius_to_fahrenheit,
)
from .store import WeatherStore

__all__ = [
    "UNIT_SYSTEMS",
    "ComparisonOperator",
    "DeliveryResult",
    "DeliveryStatus",
    "NotificationOutcome",
    "NotificationType",
    "Reading",
    "Station",
    "TriggerEvent",
    "WeatherAlert",
    "WeatherMetric",
    "WeatherStats",
    "WeatherStore",
    "celsius_to_fahrenheit",
]
