"""Common storage and notification channels for Tempest weather alerts."""

from .channels import (
    EmailChannel,
    EmailMessage,
    SMSChannel,
)
from .store import (
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
    WeatherStore,
)

__all__ = [
    # Channels
    "EmailChannel",
    "EmailMessage",
    "SMSChannel",
    # Store
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
]
