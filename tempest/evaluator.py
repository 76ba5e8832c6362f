"""Alert evaluation for incoming weather readings.

Both the synchronous ingestion path and the periodic sweep call
evaluate_reading(). For every candidate alert:

1. Skip it while it is in cooldown (no evaluation, no history).
2. Pull the alert's metric from the reading; a missing value is skipped.
3. Compare against the threshold.
4. On a match, claim the trigger and write a pending history entry in one
   transaction, notify, then record the outcome on that entry.
"""

import logging
from datetime import datetime
from typing import Callable

from .alerters import MultiChannelAlerter, create_alerter_from_config
from tempest_common.store import (
    NotificationOutcome,
    Reading,
    TriggerEvent,
    WeatherAlert,
    WeatherMetric,
    WeatherStore,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def find_candidate_alerts(store: WeatherStore, station_id: str | None) -> list[WeatherAlert]:
    """Enabled alerts for this station followed by enabled global alerts."""
    station_alerts = store.find_alerts(station_id, enabled_only=True) if station_id else []
    return station_alerts + store.find_global_alerts(enabled_only=True)


def extract_metric_value(metric: WeatherMetric, reading: Reading) -> float | None:
    """Return the reading's value for a metric, or None when not reported."""
    return reading.value_for(metric)


def check_alert(alert: WeatherAlert, reading: Reading, now: datetime) -> float | None:
    """
    Decide whether an alert fires for a reading.

    Returns the actual metric value when the alert should trigger,
    None otherwise.
    """
    if alert.is_in_cooldown(now):
        logger.debug(f"Alert {alert.id} is in cooldown, skipping")
        return None

    actual_value = extract_metric_value(alert.metric, reading)
    if actual_value is None:
        logger.debug(f"Metric {alert.metric.value} not available in reading {reading.id}")
        return None

    if alert.operator.evaluate(actual_value, alert.threshold):
        return actual_value
    return None


def handle_trigger(
    alert: WeatherAlert,
    reading: Reading,
    actual_value: float,
    store: WeatherStore,
    alerter: MultiChannelAlerter,
    now: datetime,
) -> TriggerEvent | None:
    """
    Record a trigger, send notifications and complete the history entry.

    The claim and a pending history entry are committed together before
    any notification goes out, so every counted trigger has an audit row.

    Returns the TriggerEvent, or None when another evaluation claimed the
    alert first.
    """
    claimed = store.record_trigger(alert.id, reading, actual_value, now)
    if claimed is None:
        logger.debug(f"Alert {alert.id} was claimed by a concurrent evaluation, skipping")
        return None
    alert, event = claimed

    logger.info(
        f"Alert triggered: {alert.name} - {alert.describe_condition()} (actual: {actual_value})"
    )

    try:
        outcome = alerter.notify(alert, reading, actual_value)
    except Exception as e:
        logger.exception(f"Failed to send notification for alert {alert.id}")
        outcome = NotificationOutcome.failed(alert.notification_type, str(e))

    try:
        return store.complete_trigger(event, outcome)
    except Exception:
        logger.exception(f"Failed to record notification outcome for history entry {event.id}")
        return event


def evaluate_reading(
    reading: Reading,
    store: WeatherStore,
    alerter: MultiChannelAlerter,
    clock: Clock = datetime.now,
) -> list[TriggerEvent]:
    """
    Evaluate one reading against every applicable alert.

    Alerts are independent: an error on one is logged and the rest of
    the batch still runs.

    Returns the trigger events written.
    """
    now = clock()
    logger.debug(f"Evaluating reading {reading.id} from station {reading.station_id}")

    events = []
    for alert in find_candidate_alerts(store, reading.station_id):
        try:
            actual_value = check_alert(alert, reading, now)
            if actual_value is None:
                continue
            event = handle_trigger(alert, reading, actual_value, store, alerter, now)
            if event is not None:
                events.append(event)
        except Exception:
            logger.exception(f"Error evaluating alert {alert.id} for reading {reading.id}")

    return events


class AlertEvaluator:
    """Binds the store, alerter and clock used by evaluate_reading()."""

    def __init__(
        self,
        store: WeatherStore,
        alerter: MultiChannelAlerter | None = None,
        clock: Clock | None = None,
    ):
        self.store = store
        self.alerter = alerter or create_alerter_from_config()
        self.clock = clock or datetime.now

    def evaluate_reading(self, reading: Reading) -> list[TriggerEvent]:
        return evaluate_reading(reading, self.store, self.alerter, self.clock)
