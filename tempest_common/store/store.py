"""SQLite-backed storage for stations, readings, alerts and trigger history."""

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Iterator

from .models import (
    READING_VALUE_FIELDS,
    NotificationOutcome,
    Reading,
    Station,
    TriggerEvent,
    WeatherAlert,
    format_datetime,
)

logger = logging.getLogger(__name__)


class WeatherStore:
    """SQLite-backed storage for the weather alert system."""

    def __init__(self, db_path: str | None = None):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database. Defaults to TEMPEST_DB_PATH env var
                     or ~/.tempest/weather.db
        """
        if db_path:
            self.db_path = os.path.expanduser(str(db_path))
        else:
            self.db_path = os.path.expanduser(
                os.environ.get("TEMPEST_DB_PATH", "~/.tempest/weather.db")
            )

        # Ensure directory exists
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path) as f:
            schema = f.read()

        with self._connect() as conn:
            conn.executescript(schema)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection with row factory, closed on exit."""
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    # Stations

    def get_station(self, station_id: str) -> Station | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM weather_stations WHERE station_id = ?",
                (station_id,),
            ).fetchone()
            return Station.from_row(row) if row else None

    def list_stations(self, active_only: bool = False) -> list[Station]:
        query = "SELECT * FROM weather_stations"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY station_id"
        with self._connect() as conn:
            return [Station.from_row(row) for row in conn.execute(query).fetchall()]

    def save_station(self, station: Station) -> Station:
        """Insert a new station or update the existing one with the same station_id.

        last_seen is only written on insert; touch_station owns it afterwards.
        """
        now = datetime.now()
        existing = self.get_station(station.station_id)

        with self._connect() as conn:
            if existing is None:
                cursor = conn.execute(
                    """
                    INSERT INTO weather_stations (
                        station_id, name, location, latitude, longitude, altitude,
                        api_key, is_active, last_seen, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        station.station_id, station.name, station.location,
                        station.latitude, station.longitude, station.altitude,
                        station.api_key, int(station.is_active),
                        format_datetime(station.last_seen),
                        format_datetime(now), format_datetime(now),
                    ),
                )
                conn.commit()
                logger.info(f"Registered station {station.station_id}")
                return replace(station, id=cursor.lastrowid, created_at=now, updated_at=now)

            conn.execute(
                """
                UPDATE weather_stations
                SET name = ?, location = ?, latitude = ?, longitude = ?, altitude = ?,
                    api_key = ?, is_active = ?, updated_at = ?
                WHERE station_id = ?
                """,
                (
                    station.name, station.location, station.latitude,
                    station.longitude, station.altitude, station.api_key,
                    int(station.is_active), format_datetime(now), station.station_id,
                ),
            )
            conn.commit()
            return replace(
                station,
                id=existing.id,
                last_seen=existing.last_seen,
                created_at=existing.created_at,
                updated_at=now,
            )

    def touch_station(self, station_id: str, seen_at: datetime) -> Station:
        """Record that a station reported, registering it on first contact.

        A single upsert so concurrent first readings cannot collide, and
        only last_seen/updated_at change on an existing station.
        """
        stamp = format_datetime(seen_at)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO weather_stations (
                    station_id, name, is_active, last_seen, created_at, updated_at
                ) VALUES (?, ?, 1, ?, ?, ?)
                ON CONFLICT(station_id) DO UPDATE SET
                    last_seen = excluded.last_seen,
                    updated_at = excluded.updated_at
                """,
                (station_id, station_id, stamp, stamp, stamp),
            )
            conn.commit()
        return self.get_station(station_id)

    # Readings

    def insert_reading(self, reading: Reading) -> Reading:
        """Persist a reading and return it with its assigned id."""
        columns = ("station_id", "timestamp", *READING_VALUE_FIELDS, "created_at")
        values = (
            reading.station_id,
            format_datetime(reading.timestamp),
            *(getattr(reading, name) for name in READING_VALUE_FIELDS),
            format_datetime(reading.created_at),
        )
        placeholders = ", ".join("?" for _ in columns)

        with self._connect() as conn:
            cursor = conn.execute(
                f"INSERT INTO weather_readings ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            conn.commit()
            return replace(reading, id=cursor.lastrowid)

    def get_reading(self, reading_id: int) -> Reading | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM weather_readings WHERE id = ?", (reading_id,)
            ).fetchone()
            return Reading.from_row(row) if row else None

    def get_latest_reading(self, station_id: str | None = None) -> Reading | None:
        """Latest reading overall, or for one station."""
        with self._connect() as conn:
            if station_id is None:
                row = conn.execute(
                    "SELECT * FROM weather_readings ORDER BY timestamp DESC, id DESC LIMIT 1"
                ).fetchone()
            else:
                row = conn.execute(
                    """
                    SELECT * FROM weather_readings WHERE station_id = ?
                    ORDER BY timestamp DESC, id DESC LIMIT 1
                    """,
                    (station_id,),
                ).fetchone()
            return Reading.from_row(row) if row else None

    def get_readings_since(
        self,
        since: datetime,
        station_id: str | None = None,
        descending: bool = False,
    ) -> list[Reading]:
        """Readings with timestamp >= since, oldest first unless descending."""
        order = "DESC" if descending else "ASC"
        params: list = [format_datetime(since)]
        query = "SELECT * FROM weather_readings WHERE timestamp >= ?"
        if station_id is not None:
            query += " AND station_id = ?"
            params.append(station_id)
        query += f" ORDER BY timestamp {order}, id {order}"

        with self._connect() as conn:
            return [Reading.from_row(row) for row in conn.execute(query, params).fetchall()]

    # Alerts

    def get_alert(self, alert_id: int) -> WeatherAlert | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM weather_alerts WHERE id = ?", (alert_id,)
            ).fetchone()
            return WeatherAlert.from_row(row) if row else None

    def list_alerts(self) -> list[WeatherAlert]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM weather_alerts ORDER BY id").fetchall()
            return [WeatherAlert.from_row(row) for row in rows]

    def find_alerts_by_user(self, user_email: str) -> list[WeatherAlert]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM weather_alerts WHERE user_email = ? ORDER BY created_at DESC",
                (user_email,),
            ).fetchall()
            return [WeatherAlert.from_row(row) for row in rows]

    def find_alerts(self, station_id: str, enabled_only: bool = True) -> list[WeatherAlert]:
        """Alerts scoped to a single station."""
        query = "SELECT * FROM weather_alerts WHERE station_id = ?"
        if enabled_only:
            query += " AND is_enabled = 1"
        with self._connect() as conn:
            rows = conn.execute(query + " ORDER BY id", (station_id,)).fetchall()
            return [WeatherAlert.from_row(row) for row in rows]

    def find_global_alerts(self, enabled_only: bool = True) -> list[WeatherAlert]:
        """Alerts with no station scope (apply to every station)."""
        query = "SELECT * FROM weather_alerts WHERE station_id IS NULL"
        if enabled_only:
            query += " AND is_enabled = 1"
        with self._connect() as conn:
            rows = conn.execute(query + " ORDER BY id").fetchall()
            return [WeatherAlert.from_row(row) for row in rows]

    def count_enabled_alerts(self) -> int:
        with self._connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM weather_alerts WHERE is_enabled = 1"
            ).fetchone()[0]

    def save_alert(self, alert: WeatherAlert) -> WeatherAlert:
        """Insert a new alert (id is None) or overwrite an existing one."""
        now = datetime.now()
        values = (
            alert.name, alert.description, alert.station_id, alert.metric.value,
            alert.operator.value, alert.threshold, alert.user_email, alert.user_phone,
            alert.notification_type.value, int(alert.is_enabled), alert.cooldown_minutes,
            format_datetime(alert.last_triggered_at), alert.trigger_count,
        )

        with self._connect() as conn:
            if alert.id is None:
                cursor = conn.execute(
                    """
                    INSERT INTO weather_alerts (
                        name, description, station_id, metric, operator, threshold,
                        user_email, user_phone, notification_type, is_enabled,
                        cooldown_minutes, last_triggered_at, trigger_count,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    values + (format_datetime(now), format_datetime(now)),
                )
                conn.commit()
                alert.id = cursor.lastrowid
                alert.created_at = now
            else:
                conn.execute(
                    """
                    UPDATE weather_alerts
                    SET name = ?, description = ?, station_id = ?, metric = ?, operator = ?,
                        threshold = ?, user_email = ?, user_phone = ?, notification_type = ?,
                        is_enabled = ?, cooldown_minutes = ?, last_triggered_at = ?,
                        trigger_count = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    values + (format_datetime(now), alert.id),
                )
                conn.commit()

        alert.updated_at = now
        return alert

    def delete_alert(self, alert_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM weather_alerts WHERE id = ?", (alert_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _claim(self, conn: sqlite3.Connection, alert_id: int, now: datetime) -> WeatherAlert | None:
        """Cooldown check and state update. Caller holds a write transaction."""
        row = conn.execute(
            "SELECT * FROM weather_alerts WHERE id = ?", (alert_id,)
        ).fetchone()
        if row is None:
            return None

        alert = WeatherAlert.from_row(row)
        if not alert.is_enabled or alert.is_in_cooldown(now):
            return None

        conn.execute(
            """
            UPDATE weather_alerts
            SET last_triggered_at = ?, trigger_count = trigger_count + 1
            WHERE id = ?
            """,
            (format_datetime(now), alert_id),
        )
        alert.last_triggered_at = now
        alert.trigger_count += 1
        return alert

    def record_trigger(
        self,
        alert_id: int,
        reading: Reading,
        actual_value: float,
        now: datetime,
    ) -> tuple[WeatherAlert, TriggerEvent] | None:
        """Claim a trigger and write its pending history entry in one transaction.

        Either both the alert state and the history row are committed or
        neither is. The entry's channel statuses stay pending until
        complete_trigger() records the dispatch outcome.

        Returns (claimed alert, pending event), or None when the claim is
        refused.
        """
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                alert = self._claim(conn, alert_id, now)
                if alert is None:
                    conn.rollback()
                    return None
                event = TriggerEvent.pending(alert, reading, actual_value, now)
                event_id = self._insert_history(conn, event)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
        return alert, replace(event, id=event_id)

    def complete_trigger(self, event: TriggerEvent, outcome: NotificationOutcome) -> TriggerEvent:
        """Record the dispatch outcome on a pending history entry."""
        completed = event.with_outcome(outcome)
        with self._connect() as conn:
            conn.execute(
                """
                UPDATE alert_history
                SET notification_sent = ?, notification_error = ?,
                    email_status = ?, sms_status = ?
                WHERE id = ?
                """,
                (
                    int(completed.notification_sent), completed.notification_error,
                    completed.email_status.value, completed.sms_status.value,
                    completed.id,
                ),
            )
            conn.commit()
        return completed

    # Trigger history

    def _insert_history(self, conn: sqlite3.Connection, event: TriggerEvent) -> int:
        cursor = conn.execute(
            """
            INSERT INTO alert_history (
                alert_id, alert_name, station_id, reading_id, metric, operator,
                actual_value, threshold_value, notification_sent,
                notification_error, email_status, sms_status, triggered_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.alert_id, event.alert_name, event.station_id,
                event.reading_id, event.metric.value, event.operator.value,
                event.actual_value, event.threshold_value,
                int(event.notification_sent), event.notification_error,
                event.email_status.value, event.sms_status.value,
                format_datetime(event.triggered_at),
            ),
        )
        return cursor.lastrowid

    def get_history_for_alert(
        self,
        alert_id: int,
        limit: int = 20,
        offset: int = 0,
    ) -> list[TriggerEvent]:
        """History for one alert, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM alert_history WHERE alert_id = ?
                ORDER BY triggered_at DESC, id DESC LIMIT ? OFFSET ?
                """,
                (alert_id, limit, offset),
            ).fetchall()
            return [TriggerEvent.from_row(row) for row in rows]

    def count_history_for_alert(self, alert_id: int) -> int:
        with self._connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM alert_history WHERE alert_id = ?", (alert_id,)
            ).fetchone()[0]

    def get_recent_history(self, limit: int = 100) -> list[TriggerEvent]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM alert_history ORDER BY triggered_at DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()
            return [TriggerEvent.from_row(row) for row in rows]

    def delete_history_before(self, cutoff: datetime) -> int:
        """Delete history rows triggered before cutoff. Returns rows removed."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM alert_history WHERE triggered_at < ?",
                (format_datetime(cutoff),),
            )
            conn.commit()
            deleted = cursor.rowcount

        if deleted:
            logger.info(f"Deleted {deleted} history row(s) older than {cutoff.isoformat()}")
        return deleted
