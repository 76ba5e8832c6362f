"""Tests for the JSON HTTP API."""

import pytest

from conftest import RecordingAlerter
from tempest.alerters import MultiChannelAlerter
from tempest_dashboard.app import create_app


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "TEMPEST_DB_PATH": str(tmp_path / "api.db"),
        "ENABLE_SCHEDULER": False,
        "DASHBOARD_API_KEY": "",
    })
    app.weather_service.evaluator.alerter = MultiChannelAlerter(
        email=RecordingAlerter("email"),
        sms=RecordingAlerter("sms"),
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


ALERT = {
    "name": "Heat",
    "station_id": "ST1",
    "metric": "TEMPERATURE",
    "operator": "GREATER_THAN",
    "threshold": 30,
    "notification_type": "EMAIL",
    "user_email": "user@example.com",
    "cooldown_minutes": 60,
}


def _create_station(client, station_id="ST1"):
    return client.post("/api/stations", json={"station_id": station_id, "name": "Garden"})


class TestWeatherEndpoints:
    """Test reading ingestion and queries."""

    def test_ping(self, client):
        response = client.get("/api/weather/ping")
        assert response.status_code == 200
        assert response.get_json()["data"] == "pong"

    def test_record_reading(self, client):
        response = client.post("/api/weather/reading", json={"station_id": "ST1", "temp": 21.5})

        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert body["data"]["temperature"] == 21.5
        assert body["data"]["id"] is not None

        station = client.get("/api/stations/ST1").get_json()["data"]
        assert station["last_seen"] is not None

    def test_record_reading_requires_json_object(self, client):
        response = client.post("/api/weather/reading", data="temp=20", content_type="text/plain")
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_record_malformed_reading(self, client):
        response = client.post("/api/weather/reading", json={"temp": "warm"})

        assert response.status_code == 400
        assert "temperature must be numeric" in response.get_json()["message"]

    def test_latest_reading(self, client):
        assert client.get("/api/weather/latest").status_code == 404

        client.post("/api/weather/reading", json={"station_id": "ST1", "temp": 20.0})
        client.post("/api/weather/reading", json={"station_id": "ST2", "temp": 25.0})

        assert client.get("/api/weather/latest/ST1").get_json()["data"]["temperature"] == 20.0
        assert client.get("/api/weather/latest/NOPE").status_code == 404

    def test_history_and_stats(self, client):
        client.post("/api/weather/reading", json={"station_id": "ST1", "temp": 10.0})
        client.post("/api/weather/reading", json={"station_id": "ST1", "temp": 20.0})

        history = client.get("/api/weather/history?hours=1").get_json()["data"]
        assert len(history) == 2
        assert len(client.get("/api/weather/history/ST2").get_json()["data"]) == 0

        stats = client.get("/api/weather/stats?hours=1").get_json()["data"]
        assert stats["reading_count"] == 2
        assert stats["avg_temperature"] == 15.0

    def test_imperial_units(self, client):
        client.post("/api/weather/reading", json={"station_id": "ST1", "temp": 20.0, "humidity": 40})

        latest = client.get("/api/weather/latest?units=imperial").get_json()["data"]
        assert latest["temperature"] == 68.0
        assert latest["humidity"] == 40.0
        assert client.get("/api/weather/latest/ST1?units=IMPERIAL").get_json()["data"]["temperature"] == 68.0
        assert client.get("/api/weather/latest?units=metric").get_json()["data"]["temperature"] == 20.0

        history = client.get("/api/weather/history/ST1?units=imperial").get_json()["data"]
        assert [r["temperature"] for r in history] == [68.0]

        stats = client.get("/api/weather/stats?units=imperial").get_json()["data"]
        assert stats["max_temperature"] == 68.0

    @pytest.mark.parametrize("path", [
        "/api/weather/latest", "/api/weather/latest/ST1", "/api/weather/history",
        "/api/weather/history/ST1", "/api/weather/stats",
    ])
    def test_unknown_units_rejected(self, client, path):
        client.post("/api/weather/reading", json={"station_id": "ST1", "temp": 20.0})

        response = client.get(f"{path}?units=kelvin")

        assert response.status_code == 400
        assert "units" in response.get_json()["message"]


class TestAlertEndpoints:
    """Test alert management."""

    def test_create_and_get_alert(self, client):
        _create_station(client)

        response = client.post("/api/alerts", json=ALERT)

        assert response.status_code == 201
        alert = response.get_json()["data"]
        assert alert["trigger_count"] == 0
        fetched = client.get(f"/api/alerts/{alert['id']}").get_json()["data"]
        assert fetched["name"] == "Heat"
        assert len(client.get("/api/alerts").get_json()["data"]) == 1
        assert len(client.get("/api/alerts/user/user@example.com").get_json()["data"]) == 1

    def test_create_disabled_alert_from_string_flag(self, client):
        _create_station(client)

        response = client.post("/api/alerts", json=dict(ALERT, is_enabled="false"))
        assert response.status_code == 201
        assert response.get_json()["data"]["is_enabled"] is False

        client.post("/api/weather/reading", json={"station_id": "ST1", "temp": 32.0})
        assert client.get("/api/alerts/history/recent").get_json()["data"] == []

        response = client.post("/api/alerts", json=dict(ALERT, is_enabled="maybe"))
        assert response.status_code == 400
        assert "is_enabled" in response.get_json()["message"]

    def test_invalid_alert_is_rejected(self, client):
        response = client.post("/api/alerts", json=dict(ALERT, station_id=None, user_email="bad"))

        assert response.status_code == 400
        body = response.get_json()
        assert body["success"] is False
        assert "email" in body["message"]

    def test_unknown_station_is_rejected(self, client):
        response = client.post("/api/alerts", json=ALERT)
        assert response.status_code == 400

    def test_missing_alert(self, client):
        assert client.get("/api/alerts/42").status_code == 404
        assert client.delete("/api/alerts/42").status_code == 404
        assert client.put("/api/alerts/42", json=dict(ALERT, station_id=None)).status_code == 404

    def test_update_and_delete(self, client):
        _create_station(client)
        alert_id = client.post("/api/alerts", json=ALERT).get_json()["data"]["id"]

        response = client.put(f"/api/alerts/{alert_id}", json=dict(ALERT, threshold=35))
        assert response.status_code == 200
        assert response.get_json()["data"]["threshold"] == 35.0

        assert client.delete(f"/api/alerts/{alert_id}").status_code == 200
        assert client.get(f"/api/alerts/{alert_id}").status_code == 404

    def test_toggle(self, client):
        _create_station(client)
        alert_id = client.post("/api/alerts", json=ALERT).get_json()["data"]["id"]

        response = client.post(f"/api/alerts/{alert_id}/toggle?enabled=false")
        assert response.status_code == 200
        assert response.get_json()["data"]["is_enabled"] is False

        assert client.post(f"/api/alerts/{alert_id}/toggle").status_code == 400

    def test_triggered_alert_history(self, client):
        _create_station(client)
        alert_id = client.post("/api/alerts", json=ALERT).get_json()["data"]["id"]

        client.post("/api/weather/reading", json={"station_id": "ST1", "temp": 32.0})

        page = client.get(f"/api/alerts/{alert_id}/history?page=0&size=10").get_json()["data"]
        assert page["total_elements"] == 1
        event = page["content"][0]
        assert event["actual_value"] == 32.0
        assert event["notification_sent"] is True
        assert event["email_status"] == "sent"

        recent = client.get("/api/alerts/history/recent").get_json()["data"]
        assert len(recent) == 1
        assert client.get(f"/api/alerts/{alert_id}").get_json()["data"]["trigger_count"] == 1


class TestStationEndpoints:
    """Test station management."""

    def test_create_and_update_station(self, client):
        response = _create_station(client)
        assert response.status_code == 201

        response = client.put("/api/stations/ST1", json={"location": "Roof", "latitude": "51.5"})
        assert response.status_code == 200
        station = client.get("/api/stations/ST1").get_json()["data"]
        assert station["location"] == "Roof"
        assert station["latitude"] == 51.5
        assert station["name"] == "Garden"

    def test_active_stations(self, client):
        _create_station(client, "ST1")
        _create_station(client, "ST2")
        client.put("/api/stations/ST2", json={"is_active": False})

        assert len(client.get("/api/stations").get_json()["data"]) == 2
        active = client.get("/api/stations/active").get_json()["data"]
        assert [s["station_id"] for s in active] == ["ST1"]

    def test_station_id_required(self, client):
        response = client.post("/api/stations", json={"name": "Nameless"})
        assert response.status_code == 400

    def test_missing_station(self, client):
        assert client.get("/api/stations/NOPE").status_code == 404
        assert client.put("/api/stations/NOPE", json={"name": "x"}).status_code == 404


class TestApiKey:
    """Test API key protection of mutating endpoints."""

    @pytest.fixture
    def secured(self, app):
        app.config["DASHBOARD_API_KEY"] = "secret"
        return app.test_client()

    def test_mutation_requires_key(self, secured):
        response = secured.post("/api/stations", json={"station_id": "ST1"})
        assert response.status_code == 401
        assert response.get_json()["success"] is False

    def test_header_key_accepted(self, secured):
        response = secured.post(
            "/api/stations", json={"station_id": "ST1"}, headers={"X-API-Key": "secret"},
        )
        assert response.status_code == 201

    def test_query_key_accepted(self, secured):
        assert secured.post("/api/weather/reading?key=secret", json={"temp": 20}).status_code == 201

    def test_reads_are_open(self, secured):
        assert secured.get("/api/stations").status_code == 200
