"""Reading ingestion and weather query endpoints."""

from flask import Blueprint, current_app, request

from .api import check_api_key, error_response, json_body, success_response
from tempest.weather import ReadingFormatError
from tempest_common.store import UNIT_SYSTEMS

weather_bp = Blueprint("weather", __name__)

DEFAULT_HOURS = 24


@weather_bp.errorhandler(ReadingFormatError)
def handle_bad_reading(e):
    return error_response(str(e), 400)


def _hours_param():
    hours = request.args.get("hours", type=int, default=DEFAULT_HOURS)
    return hours if hours > 0 else DEFAULT_HOURS


def _units_param():
    """Requested unit system, or None when the value is not recognised."""
    units = (request.args.get("units") or "metric").strip().lower()
    return units if units in UNIT_SYSTEMS else None


def _bad_units():
    return error_response(
        f"Query parameter 'units' must be one of: {', '.join(UNIT_SYSTEMS)}", 400
    )


@weather_bp.route("/reading", methods=["POST"])
@check_api_key
def record_reading():
    """Store a station reading and evaluate alerts against it."""
    data = json_body()
    if data is None:
        return error_response("Request body must be a JSON object", 400)

    reading = current_app.weather_service.record_reading(data)
    return success_response(reading.to_dict(), "Reading recorded successfully", 201)


@weather_bp.route("/latest", methods=["GET"])
def latest_reading():
    units = _units_param()
    if units is None:
        return _bad_units()
    reading = current_app.weather_service.get_latest_reading()
    if reading is None:
        return error_response("No readings found", 404)
    return success_response(reading.to_dict(units))


@weather_bp.route("/latest/<station_id>", methods=["GET"])
def latest_station_reading(station_id):
    units = _units_param()
    if units is None:
        return _bad_units()
    reading = current_app.weather_service.get_latest_reading(station_id)
    if reading is None:
        return error_response(f"No readings found for station: {station_id}", 404)
    return success_response(reading.to_dict(units))


@weather_bp.route("/history", methods=["GET"])
def reading_history():
    """Readings from the last N hours (default 24), newest first."""
    units = _units_param()
    if units is None:
        return _bad_units()
    readings = current_app.weather_service.get_readings_for_last_hours(
        _hours_param(), descending=True,
    )
    return success_response([r.to_dict(units) for r in readings])


@weather_bp.route("/history/<station_id>", methods=["GET"])
def station_reading_history(station_id):
    units = _units_param()
    if units is None:
        return _bad_units()
    readings = current_app.weather_service.get_readings_for_last_hours(
        _hours_param(), station_id=station_id, descending=True,
    )
    return success_response([r.to_dict(units) for r in readings])


@weather_bp.route("/stats", methods=["GET"])
def weather_stats():
    """Aggregates over the last N hours. Temperatures follow ?units (default metric)."""
    units = _units_param()
    if units is None:
        return _bad_units()
    station_id = request.args.get("station_id") or None
    stats = current_app.weather_service.get_stats(_hours_param(), station_id=station_id)
    return success_response(stats.to_dict(units))


@weather_bp.route("/ping", methods=["GET"])
def ping():
    return success_response("pong", "Tempest weather API is running")
