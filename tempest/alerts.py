"""Alert management: CRUD, validation and history queries.

Validation happens here, at create/update time. The evaluator assumes
every stored alert is valid.
"""

import logging
import re
from typing import Any

from .config import config
from tempest_common.store import (
    ComparisonOperator,
    NotificationType,
    TriggerEvent,
    WeatherAlert,
    WeatherMetric,
    WeatherStore,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
PHONE_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")

RECENT_HISTORY_LIMIT = 100


class AlertValidationError(ValueError):
    """Alert configuration is incomplete or inconsistent."""


class AlertNotFoundError(LookupError):
    """No alert with the requested id."""


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def is_valid_phone(phone: str | None) -> bool:
    """E.164 format, e.g. +15551234567."""
    return bool(phone) and PHONE_PATTERN.match(phone) is not None


def _enum(enum_cls, value, label: str):
    if value is None or value == "":
        raise AlertValidationError(f"{label} is required")
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        options = ", ".join(e.value for e in enum_cls)
        raise AlertValidationError(f"Invalid {label.lower()}: {value} (expected one of {options})")


def _flag(value, label: str, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in ("true", "1", "yes", "on"):
            return True
        if normalized in ("false", "0", "no", "off"):
            return False
    elif isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise AlertValidationError(f"{label} must be true or false: {value}")


def alert_from_dict(data: dict[str, Any]) -> WeatherAlert:
    """Build an unsaved WeatherAlert from API/CLI input.

    Raises AlertValidationError for missing or malformed fields.
    """
    threshold = data.get("threshold")
    if threshold is None or threshold == "":
        raise AlertValidationError("Threshold is required")
    try:
        threshold = float(threshold)
    except (TypeError, ValueError):
        raise AlertValidationError(f"Threshold must be a number: {threshold}")

    cooldown = data.get("cooldown_minutes")
    try:
        cooldown = config.DEFAULT_COOLDOWN_MINUTES if cooldown is None else int(cooldown)
    except (TypeError, ValueError):
        raise AlertValidationError(f"Cooldown must be a whole number of minutes: {cooldown}")

    station_id = data.get("station_id")
    if isinstance(station_id, str) and not station_id.strip():
        station_id = None

    return WeatherAlert(
        name=(data.get("name") or "").strip(),
        description=data.get("description"),
        station_id=station_id,
        metric=_enum(WeatherMetric, data.get("metric"), "Metric"),
        operator=_enum(ComparisonOperator, data.get("operator"), "Operator"),
        threshold=threshold,
        notification_type=_enum(NotificationType, data.get("notification_type"), "Notification type"),
        user_email=data.get("user_email") or None,
        user_phone=data.get("user_phone") or None,
        is_enabled=_flag(data.get("is_enabled"), "is_enabled", True),
        cooldown_minutes=cooldown,
    )


class AlertService:
    """Create, update and query weather alerts."""

    def __init__(self, store: WeatherStore):
        self.store = store

    def validate_alert(self, alert: WeatherAlert) -> None:
        """
        Validate alert configuration.

        Raises:
            AlertValidationError: if validation fails
        """
        if not alert.name or not alert.name.strip():
            raise AlertValidationError("Alert name is required")
        if alert.metric is None:
            raise AlertValidationError("Metric is required")
        if alert.operator is None:
            raise AlertValidationError("Operator is required")
        if alert.threshold is None:
            raise AlertValidationError("Threshold is required")
        if alert.notification_type is None:
            raise AlertValidationError("Notification type is required")
        if alert.cooldown_minutes is None or alert.cooldown_minutes < 0:
            raise AlertValidationError("Cooldown minutes must be zero or more")

        if alert.notification_type.uses_email and not is_valid_email(alert.user_email):
            raise AlertValidationError("Valid email is required for email notifications")

        if alert.notification_type.uses_sms and not is_valid_phone(alert.user_phone):
            raise AlertValidationError(
                "Valid phone number is required for SMS notifications "
                "(E.164 format, e.g., +15551234567)"
            )

        if alert.station_id is not None and self.store.get_station(alert.station_id) is None:
            raise AlertValidationError(f"Station not found: {alert.station_id}")

    def create_alert(self, alert: WeatherAlert) -> WeatherAlert:
        """Validate and store a new alert."""
        self.validate_alert(alert)
        alert.id = None
        alert.last_triggered_at = None
        alert.trigger_count = 0
        saved = self.store.save_alert(alert)
        logger.info(f"Created alert {saved.id}: {saved.name} for metric {saved.metric.value}")
        return saved

    def update_alert(self, alert_id: int, update: WeatherAlert) -> WeatherAlert:
        """
        Replace an alert's configuration, keeping its cooldown state.

        Raises:
            AlertNotFoundError: if no alert has this id
            AlertValidationError: if the new configuration is invalid
        """
        existing = self.get_alert(alert_id)
        self.validate_alert(update)

        existing.name = update.name
        existing.description = update.description
        existing.station_id = update.station_id
        existing.metric = update.metric
        existing.operator = update.operator
        existing.threshold = update.threshold
        existing.user_email = update.user_email
        existing.user_phone = update.user_phone
        existing.notification_type = update.notification_type
        existing.cooldown_minutes = update.cooldown_minutes

        logger.info(f"Updated alert {alert_id}")
        return self.store.save_alert(existing)

    def delete_alert(self, alert_id: int) -> None:
        if not self.store.delete_alert(alert_id):
            raise AlertNotFoundError(f"Alert not found: {alert_id}")
        logger.info(f"Deleted alert {alert_id}")

    def toggle_alert(self, alert_id: int, enabled: bool) -> WeatherAlert:
        alert = self.get_alert(alert_id)
        alert.is_enabled = enabled
        logger.info(f"Alert {alert_id} {'enabled' if enabled else 'disabled'}")
        return self.store.save_alert(alert)

    def get_alert(self, alert_id: int) -> WeatherAlert:
        alert = self.store.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError(f"Alert not found: {alert_id}")
        return alert

    def get_all_alerts(self) -> list[WeatherAlert]:
        return self.store.list_alerts()

    def get_alerts_by_user(self, user_email: str) -> list[WeatherAlert]:
        return self.store.find_alerts_by_user(user_email)

    def get_alert_history(self, alert_id: int, page: int = 0, size: int = 20) -> dict[str, Any]:
        """One page of an alert's trigger history, newest first."""
        page = max(page, 0)
        size = max(size, 1)
        events = self.store.get_history_for_alert(alert_id, limit=size, offset=page * size)
        total = self.store.count_history_for_alert(alert_id)
        return {
            "content": events,
            "page": page,
            "size": size,
            "total_elements": total,
            "total_pages": (total + size - 1) // size,
        }

    def get_recent_history(self) -> list[TriggerEvent]:
        return self.store.get_recent_history(limit=RECENT_HISTORY_LIMIT)
