"""Weather reading ingestion and queries.

record_reading() is the primary evaluation path: every stored reading is
evaluated against the alerts immediately after it is persisted.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from .evaluator import AlertEvaluator
from tempest_common.store import Reading, Station, WeatherStats, WeatherStore
from tempest_common.store.models import READING_VALUE_FIELDS

logger = logging.getLogger(__name__)

# Station firmware field names -> Reading attributes
READING_ALIASES = {
    "temp": "temperature",
    "wind_dir": "wind_direction",
    "rain": "rainfall",
    "uv": "uv_index",
    "light": "light_level",
    "battery": "battery_voltage",
}


class ReadingFormatError(ValueError):
    """Reading payload could not be parsed."""


def _to_float(name: str, value) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ReadingFormatError(f"{name} must be numeric, got {value!r}")


def parse_reading(data: dict[str, Any], now: datetime) -> Reading:
    """Build a Reading from a station payload.

    Accepts both the station wire names (temp, rain, ...) and the model
    field names. The timestamp defaults to now.
    """
    values: dict[str, Any] = {}
    for key, value in data.items():
        field_name = READING_ALIASES.get(key, key)
        if field_name in READING_VALUE_FIELDS:
            values[field_name] = _to_float(field_name, value)

    timestamp = data.get("timestamp")
    if timestamp:
        try:
            timestamp = datetime.fromisoformat(str(timestamp))
        except ValueError:
            raise ReadingFormatError(f"timestamp must be ISO 8601, got {timestamp!r}")
        # Stored timestamps are naive local time
        if timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone().replace(tzinfo=None)
    else:
        timestamp = now

    station_id = data.get("station_id") or None
    return Reading(station_id=station_id, timestamp=timestamp, created_at=now, **values)


class WeatherService:
    """Record readings, maintain stations and answer reading queries."""

    def __init__(
        self,
        store: WeatherStore,
        evaluator: AlertEvaluator | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.clock = clock or datetime.now
        self.evaluator = evaluator or AlertEvaluator(store, clock=self.clock)

    def record_reading(self, data: dict[str, Any]) -> Reading:
        """
        Store a reading from a station and evaluate alerts against it.

        Once the reading is stored, station bookkeeping and alert evaluation
        errors are logged and the reading is still returned.

        Raises:
            ReadingFormatError: if the payload is malformed
        """
        now = self.clock()
        reading = parse_reading(data, now)
        logger.debug(f"Recording weather reading from station: {reading.station_id}")

        saved = self.store.insert_reading(reading)
        if saved.station_id:
            try:
                self.store.touch_station(saved.station_id, now)
            except Exception:
                logger.exception(f"Failed to update last_seen for station {saved.station_id}")

        logger.info(f"Recorded reading ID {saved.id} from station {saved.station_id}")

        try:
            self.evaluator.evaluate_reading(saved)
        except Exception:
            logger.exception(f"Alert evaluation failed for reading {saved.id}")

        return saved

    # Reading queries

    def get_latest_reading(self, station_id: str | None = None) -> Reading | None:
        return self.store.get_latest_reading(station_id)

    def get_readings_for_last_hours(
        self,
        hours: int,
        station_id: str | None = None,
        descending: bool = False,
    ) -> list[Reading]:
        since = self.clock() - timedelta(hours=hours)
        return self.store.get_readings_since(since, station_id=station_id, descending=descending)

    def get_stats(self, hours: int, station_id: str | None = None) -> WeatherStats:
        readings = self.get_readings_for_last_hours(hours, station_id=station_id)
        return WeatherStats.from_readings(readings, hours)

    # Stations

    def get_all_stations(self) -> list[Station]:
        return self.store.list_stations()

    def get_active_stations(self) -> list[Station]:
        return self.store.list_stations(active_only=True)

    def get_station(self, station_id: str) -> Station | None:
        return self.store.get_station(station_id)

    def create_or_update_station(self, station: Station) -> Station:
        if not station.station_id or not station.station_id.strip():
            raise ValueError("station_id is required")
        if not station.name:
            station.name = station.station_id
        return self.store.save_station(station)
