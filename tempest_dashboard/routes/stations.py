"""Weather station endpoints."""

from flask import Blueprint, current_app

from .api import check_api_key, error_response, json_body, success_response
from tempest_common.store import Station

stations_bp = Blueprint("stations", __name__)

STATION_FIELDS = ("name", "location", "latitude", "longitude", "altitude", "api_key", "is_active")
COORDINATE_FIELDS = ("latitude", "longitude", "altitude")


def _apply_fields(station, data):
    """Copy recognised fields from a request body onto a station."""
    for field_name in STATION_FIELDS:
        if field_name not in data:
            continue
        value = data[field_name]
        if field_name in COORDINATE_FIELDS and value is not None:
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"{field_name} must be numeric, got {value!r}")
        elif field_name == "is_active":
            value = bool(value)
        setattr(station, field_name, value)
    return station


@stations_bp.errorhandler(ValueError)
def handle_value_error(e):
    return error_response(str(e), 400)


@stations_bp.route("", methods=["GET"])
def list_stations():
    stations = current_app.weather_service.get_all_stations()
    return success_response([s.to_dict() for s in stations])


@stations_bp.route("/active", methods=["GET"])
def active_stations():
    stations = current_app.weather_service.get_active_stations()
    return success_response([s.to_dict() for s in stations])


@stations_bp.route("/<station_id>", methods=["GET"])
def get_station(station_id):
    station = current_app.weather_service.get_station(station_id)
    if station is None:
        return error_response(f"Station not found: {station_id}", 404)
    return success_response(station.to_dict())


@stations_bp.route("", methods=["POST"])
@check_api_key
def create_station():
    """Register a station, or update it if the station_id already exists."""
    data = json_body()
    if data is None:
        return error_response("Request body must be a JSON object", 400)

    station_id = (data.get("station_id") or "").strip()
    station = current_app.weather_service.get_station(station_id) if station_id else None
    if station is None:
        station = Station(station_id=station_id, name=data.get("name") or "")

    saved = current_app.weather_service.create_or_update_station(_apply_fields(station, data))
    return success_response(saved.to_dict(), "Station saved successfully", 201)


@stations_bp.route("/<station_id>", methods=["PUT"])
@check_api_key
def update_station(station_id):
    data = json_body()
    if data is None:
        return error_response("Request body must be a JSON object", 400)

    station = current_app.weather_service.get_station(station_id)
    if station is None:
        return error_response(f"Station not found: {station_id}", 404)

    saved = current_app.weather_service.create_or_update_station(_apply_fields(station, data))
    return success_response(saved.to_dict(), "Station updated successfully")
