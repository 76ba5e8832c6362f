"""Tests for alert evaluation against incoming readings."""

import sqlite3
from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from conftest import RecordingAlerter, make_alert, make_reading
from tempest.alerters import MultiChannelAlerter
from tempest.evaluator import (
    AlertEvaluator,
    check_alert,
    evaluate_reading,
    find_candidate_alerts,
    handle_trigger,
)
from tempest_common.store import (
    ComparisonOperator,
    DeliveryStatus,
    NotificationType,
    WeatherMetric,
)


@pytest.fixture
def evaluator(store, alerter, clock):
    return AlertEvaluator(store, alerter=alerter, clock=clock)


def _ingest(store, evaluator, clock, **values):
    """Store a reading stamped with the current clock and evaluate it."""
    reading = store.insert_reading(make_reading(timestamp=clock(), **values))
    return evaluator.evaluate_reading(reading)


class TestCooldownScenario:
    """Trigger, suppress, then trigger again once the cooldown expires."""

    def test_trigger_suppress_retrigger(self, store, station, evaluator, clock, email_alerter):
        alert = store.save_alert(make_alert(cooldown_minutes=60))

        events = _ingest(store, evaluator, clock, temperature=32.0)
        assert len(events) == 1
        assert events[0].actual_value == 32.0
        assert store.get_alert(alert.id).trigger_count == 1

        clock.advance(minutes=10)
        assert _ingest(store, evaluator, clock, temperature=35.0) == []
        assert store.get_alert(alert.id).trigger_count == 1
        assert store.count_history_for_alert(alert.id) == 1

        clock.advance(minutes=51)
        events = _ingest(store, evaluator, clock, temperature=33.0)
        assert len(events) == 1
        refreshed = store.get_alert(alert.id)
        assert refreshed.trigger_count == 2
        assert refreshed.last_triggered_at == clock()
        assert store.count_history_for_alert(alert.id) == 2
        assert len(email_alerter.sent) == 2

    def test_non_matching_reading_changes_nothing(self, store, station, evaluator, clock):
        alert = store.save_alert(make_alert())

        assert _ingest(store, evaluator, clock, temperature=30.0) == []
        assert store.get_alert(alert.id).trigger_count == 0
        assert store.count_history_for_alert(alert.id) == 0


class TestCandidateSelection:
    """Test station and global scoping."""

    def test_station_alerts_then_global(self, store):
        station_alert = store.save_alert(make_alert(name="Station"))
        global_alert = store.save_alert(make_alert(name="Global", station_id=None))
        store.save_alert(make_alert(name="Elsewhere", station_id="ST2"))

        candidates = find_candidate_alerts(store, "ST1")
        assert [a.id for a in candidates] == [station_alert.id, global_alert.id]

    def test_reading_without_station_only_sees_global(self, store):
        store.save_alert(make_alert(name="Station"))
        global_alert = store.save_alert(make_alert(name="Global", station_id=None))

        assert [a.id for a in find_candidate_alerts(store, None)] == [global_alert.id]

    def test_global_alert_fires_for_any_station(self, store, evaluator, clock):
        alert = store.save_alert(make_alert(station_id=None))

        reading = store.insert_reading(make_reading("ANYWHERE", clock(), temperature=40.0))
        events = evaluator.evaluate_reading(reading)

        assert [e.alert_id for e in events] == [alert.id]
        assert events[0].station_id == "ANYWHERE"

    def test_other_station_alert_does_not_fire(self, store, evaluator, clock):
        store.save_alert(make_alert(station_id="ST2"))
        assert _ingest(store, evaluator, clock, temperature=40.0) == []

    def test_disabled_alert_is_ignored(self, store, station, evaluator, clock):
        alert = store.save_alert(make_alert(is_enabled=False))

        assert _ingest(store, evaluator, clock, temperature=40.0) == []
        assert store.get_alert(alert.id).trigger_count == 0


class TestCheckAlert:
    """Test the per-alert decision."""

    def test_returns_actual_value_on_match(self, clock):
        alert = make_alert(metric=WeatherMetric.HUMIDITY, operator=ComparisonOperator.LESS_THAN, threshold=20.0)
        assert check_alert(alert, make_reading(humidity=15.0), clock()) == 15.0

    def test_missing_metric_is_skipped(self, clock):
        alert = make_alert(metric=WeatherMetric.RAINFALL, operator=ComparisonOperator.GREATER_EQUAL, threshold=0.0)
        assert check_alert(alert, make_reading(temperature=40.0), clock()) is None

    def test_cooled_down_alert_is_skipped(self, clock):
        alert = make_alert(last_triggered_at=clock() - timedelta(minutes=5))
        assert check_alert(alert, make_reading(temperature=40.0), clock()) is None

    def test_missing_metric_leaves_state_untouched(self, store, station, evaluator, clock):
        alert = store.save_alert(make_alert(metric=WeatherMetric.WIND_SPEED))

        assert _ingest(store, evaluator, clock, temperature=40.0) == []
        assert store.get_alert(alert.id).trigger_count == 0


class TestNotificationOutcomes:
    """History is written whatever happens to the notification."""

    def test_failed_notification_still_records_history(self, store, station, clock):
        failing = MultiChannelAlerter(
            email=RecordingAlerter("email", success=False, error="Email service is not configured"),
            sms=RecordingAlerter("sms"),
        )
        alert = store.save_alert(make_alert())
        evaluator = AlertEvaluator(store, alerter=failing, clock=clock)

        events = _ingest(store, evaluator, clock, temperature=32.0)

        assert len(events) == 1
        event = store.get_history_for_alert(alert.id)[0]
        assert not event.notification_sent
        assert event.notification_error == "email: Email service is not configured"
        assert event.email_status == DeliveryStatus.FAILED
        assert store.get_alert(alert.id).trigger_count == 1

    def test_both_channels_partial_failure(self, store, station, clock):
        email = RecordingAlerter("email")
        sms = RecordingAlerter("sms", success=False, error="SMS service is not enabled")
        alert = store.save_alert(make_alert(notification_type=NotificationType.BOTH))
        evaluator = AlertEvaluator(store, alerter=MultiChannelAlerter(email=email, sms=sms), clock=clock)

        _ingest(store, evaluator, clock, temperature=32.0)

        event = store.get_history_for_alert(alert.id)[0]
        assert event.email_status == DeliveryStatus.SENT
        assert event.sms_status == DeliveryStatus.FAILED
        assert not event.notification_sent
        assert event.notification_error == "sms: SMS service is not enabled"
        assert len(email.sent) == 1

    def test_sms_alert_does_not_email(self, store, station, evaluator, clock, email_alerter, sms_alerter):
        alert = store.save_alert(make_alert(notification_type=NotificationType.SMS))

        _ingest(store, evaluator, clock, temperature=32.0)

        assert email_alerter.sent == []
        assert len(sms_alerter.sent) == 1
        event = store.get_history_for_alert(alert.id)[0]
        assert event.notification_sent
        assert event.email_status == DeliveryStatus.SKIPPED

    def test_alerter_crash_is_recorded(self, store, station, clock):
        alerter = Mock()
        alerter.notify.side_effect = RuntimeError("template error")
        alert = store.save_alert(make_alert())

        events = evaluate_reading(
            store.insert_reading(make_reading(timestamp=clock(), temperature=32.0)),
            store, alerter, clock,
        )

        assert len(events) == 1
        event = store.get_history_for_alert(alert.id)[0]
        assert not event.notification_sent
        assert event.notification_error == "email: template error"
        assert store.get_alert(alert.id).trigger_count == 1


class TestBatchIsolation:
    """One alert's failure never stops the others."""

    def test_error_on_one_alert_continues_batch(self, store, station, evaluator, clock):
        first = store.save_alert(make_alert(name="First"))
        second = store.save_alert(make_alert(name="Second"))

        real_record = store.record_trigger

        def flaky_record(alert_id, reading, actual_value, now):
            if alert_id == first.id:
                raise RuntimeError("database is locked")
            return real_record(alert_id, reading, actual_value, now)

        with patch.object(store, "record_trigger", side_effect=flaky_record):
            events = _ingest(store, evaluator, clock, temperature=32.0)

        assert [e.alert_id for e in events] == [second.id]
        assert store.get_alert(first.id).trigger_count == 0
        assert store.count_history_for_alert(first.id) == 0

    def test_concurrent_claim_writes_no_history(self, store, station, alerter, clock, email_alerter):
        alert = store.save_alert(make_alert())
        reading = store.insert_reading(make_reading(timestamp=clock(), temperature=32.0))

        # The other evaluation path claims the alert first
        store.record_trigger(alert.id, reading, 32.0, clock())

        assert handle_trigger(alert, reading, 32.0, store, alerter, clock()) is None
        assert store.count_history_for_alert(alert.id) == 1
        assert email_alerter.sent == []
        assert store.get_alert(alert.id).trigger_count == 1


class TestTriggerAudit:
    """Every counted trigger keeps a history entry."""

    def test_outcome_write_failure_leaves_pending_entry(self, store, station, evaluator, clock, email_alerter):
        alert = store.save_alert(make_alert())

        with patch.object(store, "complete_trigger", side_effect=RuntimeError("database is locked")):
            events = _ingest(store, evaluator, clock, temperature=32.0)

        assert len(events) == 1
        assert events[0].email_status == DeliveryStatus.PENDING
        assert len(email_alerter.sent) == 1
        assert store.get_alert(alert.id).trigger_count == 1
        history = store.get_history_for_alert(alert.id)
        assert len(history) == 1
        assert history[0].id == events[0].id
        assert history[0].email_status == DeliveryStatus.PENDING
        assert not history[0].notification_sent

    def test_history_write_failure_keeps_alert_armed(self, store, station, evaluator, clock, email_alerter):
        alert = store.save_alert(make_alert())

        with patch.object(store, "_insert_history", side_effect=sqlite3.OperationalError("disk I/O error")):
            assert _ingest(store, evaluator, clock, temperature=32.0) == []

        assert email_alerter.sent == []
        assert store.get_alert(alert.id).trigger_count == 0
        assert store.count_history_for_alert(alert.id) == 0

        # Next reading fires normally
        assert len(_ingest(store, evaluator, clock, temperature=33.0)) == 1
        assert store.count_history_for_alert(alert.id) == 1
