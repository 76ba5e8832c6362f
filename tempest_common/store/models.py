"""Data models for weather stations, readings, alerts and trigger history."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


EQUALS_TOLERANCE = 0.01


class WeatherMetric(Enum):
    """Weather metrics available for alert thresholds."""
    TEMPERATURE = "TEMPERATURE"
    HUMIDITY = "HUMIDITY"
    PRESSURE = "PRESSURE"
    WIND_SPEED = "WIND_SPEED"
    RAINFALL = "RAINFALL"
    UV_INDEX = "UV_INDEX"
    LIGHT_LEVEL = "LIGHT_LEVEL"
    BATTERY_VOLTAGE = "BATTERY_VOLTAGE"

    @property
    def display_name(self) -> str:
        return _METRIC_DISPLAY[self][0]

    @property
    def unit(self) -> str:
        return _METRIC_DISPLAY[self][1]

    @property
    def reading_field(self) -> str:
        """Name of the Reading attribute holding this metric."""
        return self.value.lower()


_METRIC_DISPLAY = {
    WeatherMetric.TEMPERATURE: ("Temperature", "°C"),
    WeatherMetric.HUMIDITY: ("Humidity", "%"),
    WeatherMetric.PRESSURE: ("Pressure", "hPa"),
    WeatherMetric.WIND_SPEED: ("Wind Speed", "km/h"),
    WeatherMetric.RAINFALL: ("Rainfall", "mm"),
    WeatherMetric.UV_INDEX: ("UV Index", ""),
    WeatherMetric.LIGHT_LEVEL: ("Light Level", "lux"),
    WeatherMetric.BATTERY_VOLTAGE: ("Battery Voltage", "V"),
}


class ComparisonOperator(Enum):
    """Comparison operators for alert threshold evaluation."""
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    EQUALS = "EQUALS"
    GREATER_EQUAL = "GREATER_EQUAL"
    LESS_EQUAL = "LESS_EQUAL"

    @property
    def symbol(self) -> str:
        return {
            ComparisonOperator.GREATER_THAN: ">",
            ComparisonOperator.LESS_THAN: "<",
            ComparisonOperator.EQUALS: "=",
            ComparisonOperator.GREATER_EQUAL: "≥",
            ComparisonOperator.LESS_EQUAL: "≤",
        }[self]

    def evaluate(self, actual: float | None, threshold: float | None) -> bool:
        """Check whether actual satisfies the comparison against threshold.

        EQUALS uses a small tolerance so float noise from the station
        does not prevent a match.
        """
        if actual is None or threshold is None:
            return False

        if self is ComparisonOperator.GREATER_THAN:
            return actual > threshold
        if self is ComparisonOperator.LESS_THAN:
            return actual < threshold
        if self is ComparisonOperator.EQUALS:
            return abs(actual - threshold) < EQUALS_TOLERANCE
        if self is ComparisonOperator.GREATER_EQUAL:
            return actual >= threshold
        return actual <= threshold


class NotificationType(Enum):
    """Channels an alert notifies through."""
    EMAIL = "EMAIL"
    SMS = "SMS"
    BOTH = "BOTH"

    @property
    def uses_email(self) -> bool:
        return self in (NotificationType.EMAIL, NotificationType.BOTH)

    @property
    def uses_sms(self) -> bool:
        return self in (NotificationType.SMS, NotificationType.BOTH)


class DeliveryStatus(Enum):
    """Per-channel outcome recorded in trigger history."""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


UNIT_SYSTEMS = ("metric", "imperial")


def celsius_to_fahrenheit(celsius: float | None) -> float | None:
    if celsius is None:
        return None
    return celsius * 9.0 / 5.0 + 32.0


def parse_datetime(val) -> datetime | None:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(val)


def format_datetime(val: datetime | None) -> str | None:
    """Fixed-width ISO format so stored timestamps compare lexically."""
    if val is None:
        return None
    return val.isoformat(timespec="microseconds")


def _iso(val: datetime | None) -> str | None:
    return val.isoformat() if val else None


@dataclass
class Station:
    """A registered weather station."""
    station_id: str
    name: str
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    api_key: str | None = None
    is_active: bool = True
    last_seen: datetime | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "station_id": self.station_id,
            "name": self.name,
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "is_active": self.is_active,
            "last_seen": _iso(self.last_seen),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row) -> "Station":
        return cls(
            id=row["id"],
            station_id=row["station_id"],
            name=row["name"],
            location=row["location"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            altitude=row["altitude"],
            api_key=row["api_key"],
            is_active=bool(row["is_active"]),
            last_seen=parse_datetime(row["last_seen"]),
            created_at=parse_datetime(row["created_at"]),
            updated_at=parse_datetime(row["updated_at"]),
        )


READING_VALUE_FIELDS = (
    "temperature",
    "humidity",
    "pressure",
    "wind_speed",
    "wind_direction",
    "rainfall",
    "uv_index",
    "light_level",
    "battery_voltage",
)


@dataclass(frozen=True)
class Reading:
    """A single measurement record from a station. Never mutated."""
    station_id: str | None
    timestamp: datetime
    temperature: float | None = None
    humidity: float | None = None
    pressure: float | None = None
    wind_speed: float | None = None
    wind_direction: float | None = None
    rainfall: float | None = None
    uv_index: float | None = None
    light_level: float | None = None
    battery_voltage: float | None = None
    created_at: datetime = field(default_factory=datetime.now)
    id: int | None = None

    def value_for(self, metric: WeatherMetric) -> float | None:
        return getattr(self, metric.reading_field)

    def to_dict(self, units: str = "metric") -> dict[str, Any]:
        """Serialize the reading. Imperial units report temperature in °F."""
        data = {
            "id": self.id,
            "station_id": self.station_id,
            "timestamp": _iso(self.timestamp),
        }
        for name in READING_VALUE_FIELDS:
            data[name] = getattr(self, name)
        if units == "imperial":
            data["temperature"] = celsius_to_fahrenheit(self.temperature)
        data["created_at"] = _iso(self.created_at)
        return data

    @classmethod
    def from_row(cls, row) -> "Reading":
        return cls(
            id=row["id"],
            station_id=row["station_id"],
            timestamp=parse_datetime(row["timestamp"]),
            created_at=parse_datetime(row["created_at"]),
            **{name: row[name] for name in READING_VALUE_FIELDS},
        )


@dataclass
class WeatherAlert:
    """A user-defined threshold rule on one metric.

    A station_id of None makes the alert global (evaluated for every
    station). Cooldown state (last_triggered_at, trigger_count) is only
    changed through the store's trigger claim.
    """
    name: str
    metric: WeatherMetric
    operator: ComparisonOperator
    threshold: float
    notification_type: NotificationType
    station_id: str | None = None
    description: str | None = None
    user_email: str | None = None
    user_phone: str | None = None
    is_enabled: bool = True
    cooldown_minutes: int = 60
    last_triggered_at: datetime | None = None
    trigger_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    id: int | None = None

    @property
    def is_global(self) -> bool:
        return self.station_id is None

    def cooldown_ends_at(self) -> datetime | None:
        if self.last_triggered_at is None:
            return None
        return self.last_triggered_at + timedelta(minutes=self.cooldown_minutes)

    def is_in_cooldown(self, now: datetime | None = None) -> bool:
        """Check if the alert was triggered too recently to fire again."""
        cooldown_end = self.cooldown_ends_at()
        if cooldown_end is None:
            return False
        now = now or datetime.now()
        return now < cooldown_end

    def describe_condition(self) -> str:
        unit = self.metric.unit
        return f"{self.metric.display_name} {self.operator.symbol} {self.threshold}{unit}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "station_id": self.station_id,
            "metric": self.metric.value,
            "operator": self.operator.value,
            "threshold": self.threshold,
            "user_email": self.user_email,
            "user_phone": self.user_phone,
            "notification_type": self.notification_type.value,
            "is_enabled": self.is_enabled,
            "cooldown_minutes": self.cooldown_minutes,
            "last_triggered_at": _iso(self.last_triggered_at),
            "trigger_count": self.trigger_count,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_row(cls, row) -> "WeatherAlert":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            station_id=row["station_id"],
            metric=WeatherMetric(row["metric"]),
            operator=ComparisonOperator(row["operator"]),
            threshold=row["threshold"],
            user_email=row["user_email"],
            user_phone=row["user_phone"],
            notification_type=NotificationType(row["notification_type"]),
            is_enabled=bool(row["is_enabled"]),
            cooldown_minutes=row["cooldown_minutes"],
            last_triggered_at=parse_datetime(row["last_triggered_at"]),
            trigger_count=row["trigger_count"],
            created_at=parse_datetime(row["created_at"]),
            updated_at=parse_datetime(row["updated_at"]),
        )


@dataclass(frozen=True)
class DeliveryResult:
    """Result of sending one message over one channel."""
    channel: str
    success: bool
    error: str | None = None


@dataclass
class NotificationOutcome:
    """Per-channel delivery results for a single trigger."""
    email: DeliveryResult | None = None
    sms: DeliveryResult | None = None

    @property
    def results(self) -> list[DeliveryResult]:
        return [r for r in (self.email, self.sms) if r is not None]

    @property
    def sent(self) -> bool:
        """True only when every attempted channel delivered."""
        results = self.results
        return bool(results) and all(r.success for r in results)

    @property
    def error(self) -> str | None:
        errors = [f"{r.channel}: {r.error}" for r in self.results if not r.success]
        return "; ".join(errors) if errors else None

    @staticmethod
    def _status(result: DeliveryResult | None) -> DeliveryStatus:
        if result is None:
            return DeliveryStatus.SKIPPED
        return DeliveryStatus.SENT if result.success else DeliveryStatus.FAILED

    @property
    def email_status(self) -> DeliveryStatus:
        return self._status(self.email)

    @property
    def sms_status(self) -> DeliveryStatus:
        return self._status(self.sms)

    @classmethod
    def failed(cls, notification_type: NotificationType, error: str) -> "NotificationOutcome":
        """Outcome for a dispatch that blew up before any channel reported."""
        outcome = cls()
        if notification_type.uses_email:
            outcome.email = DeliveryResult("email", False, error)
        if notification_type.uses_sms:
            outcome.sms = DeliveryResult("sms", False, error)
        return outcome


@dataclass(frozen=True)
class TriggerEvent:
    """Immutable audit record of one alert trigger."""
    alert_id: int
    alert_name: str
    station_id: str | None
    reading_id: int | None
    metric: WeatherMetric
    operator: ComparisonOperator
    actual_value: float
    threshold_value: float
    notification_sent: bool
    triggered_at: datetime
    notification_error: str | None = None
    email_status: DeliveryStatus = DeliveryStatus.SKIPPED
    sms_status: DeliveryStatus = DeliveryStatus.SKIPPED
    id: int | None = None

    @classmethod
    def pending(
        cls,
        alert: WeatherAlert,
        reading: Reading,
        actual_value: float,
        triggered_at: datetime,
    ) -> "TriggerEvent":
        """History entry written before dispatch; selected channels are pending."""
        def status(used: bool) -> DeliveryStatus:
            return DeliveryStatus.PENDING if used else DeliveryStatus.SKIPPED

        return cls(
            alert_id=alert.id,
            alert_name=alert.name,
            station_id=reading.station_id,
            reading_id=reading.id,
            metric=alert.metric,
            operator=alert.operator,
            actual_value=actual_value,
            threshold_value=alert.threshold,
            notification_sent=False,
            email_status=status(alert.notification_type.uses_email),
            sms_status=status(alert.notification_type.uses_sms),
            triggered_at=triggered_at,
        )

    def with_outcome(self, outcome: NotificationOutcome) -> "TriggerEvent":
        return replace(
            self,
            notification_sent=outcome.sent,
            notification_error=outcome.error,
            email_status=outcome.email_status,
            sms_status=outcome.sms_status,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "alert_id": self.alert_id,
            "alert_name": self.alert_name,
            "station_id": self.station_id,
            "reading_id": self.reading_id,
            "metric": self.metric.value,
            "operator": self.operator.value,
            "actual_value": self.actual_value,
            "threshold_value": self.threshold_value,
            "notification_sent": self.notification_sent,
            "notification_error": self.notification_error,
            "email_status": self.email_status.value,
            "sms_status": self.sms_status.value,
            "triggered_at": _iso(self.triggered_at),
        }

    @classmethod
    def from_row(cls, row) -> "TriggerEvent":
        return cls(
            id=row["id"],
            alert_id=row["alert_id"],
            alert_name=row["alert_name"],
            station_id=row["station_id"],
            reading_id=row["reading_id"],
            metric=WeatherMetric(row["metric"]),
            operator=ComparisonOperator(row["operator"]),
            actual_value=row["actual_value"],
            threshold_value=row["threshold_value"],
            notification_sent=bool(row["notification_sent"]),
            notification_error=row["notification_error"],
            email_status=DeliveryStatus(row["email_status"]),
            sms_status=DeliveryStatus(row["sms_status"]),
            triggered_at=parse_datetime(row["triggered_at"]),
        )


@dataclass
class WeatherStats:
    """Aggregate statistics over a trailing window of readings."""
    min_temperature: float = 0.0
    max_temperature: float = 0.0
    avg_temperature: float = 0.0
    avg_humidity: float = 0.0
    avg_pressure: float = 0.0
    total_rainfall: float = 0.0
    max_wind_speed: float = 0.0
    reading_count: int = 0
    period_hours: int = 0

    @classmethod
    def from_readings(cls, readings: list[Reading], hours: int) -> "WeatherStats":
        if not readings:
            return cls()

        def values(name: str) -> list[float]:
            return [getattr(r, name) for r in readings if getattr(r, name) is not None]

        temps = values("temperature")
        humidity = values("humidity")
        pressure = values("pressure")
        wind = values("wind_speed")

        return cls(
            min_temperature=min(temps) if temps else 0.0,
            max_temperature=max(temps) if temps else 0.0,
            avg_temperature=sum(temps) / len(temps) if temps else 0.0,
            avg_humidity=sum(humidity) / len(humidity) if humidity else 0.0,
            avg_pressure=sum(pressure) / len(pressure) if pressure else 0.0,
            total_rainfall=sum(values("rainfall")),
            max_wind_speed=max(wind) if wind else 0.0,
            reading_count=len(readings),
            period_hours=hours,
        )

    def to_dict(self, units: str = "metric") -> dict[str, Any]:
        # An empty window stays all-zero in either unit system
        if units == "imperial" and self.reading_count:
            convert = celsius_to_fahrenheit
        else:
            def convert(value):
                return value

        return {
            "min_temperature": convert(self.min_temperature),
            "max_temperature": convert(self.max_temperature),
            "avg_temperature": convert(self.avg_temperature),
            "avg_humidity": self.avg_humidity,
            "avg_pressure": self.avg_pressure,
            "total_rainfall": self.total_rainfall,
            "max_wind_speed": self.max_wind_speed,
            "reading_count": self.reading_count,
            "period_hours": self.period_hours,
        }
