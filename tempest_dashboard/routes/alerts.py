"""Alert management and trigger history endpoints."""

from flask import Blueprint, current_app, request

from .api import check_api_key, error_response, json_body, parse_bool, success_response
from tempest.alerts import AlertNotFoundError, AlertValidationError, alert_from_dict

alerts_bp = Blueprint("alerts", __name__)


@alerts_bp.errorhandler(AlertValidationError)
def handle_validation_error(e):
    return error_response(str(e), 400)


@alerts_bp.errorhandler(AlertNotFoundError)
def handle_not_found(e):
    return error_response(str(e), 404)


@alerts_bp.route("", methods=["GET"])
def list_alerts():
    alerts = current_app.alert_service.get_all_alerts()
    return success_response([a.to_dict() for a in alerts])


@alerts_bp.route("/user/<email>", methods=["GET"])
def user_alerts(email):
    alerts = current_app.alert_service.get_alerts_by_user(email)
    return success_response([a.to_dict() for a in alerts])


@alerts_bp.route("/<int:alert_id>", methods=["GET"])
def get_alert(alert_id):
    alert = current_app.alert_service.get_alert(alert_id)
    return success_response(alert.to_dict())


@alerts_bp.route("", methods=["POST"])
@check_api_key
def create_alert():
    data = json_body()
    if data is None:
        return error_response("Request body must be a JSON object", 400)

    alert = current_app.alert_service.create_alert(alert_from_dict(data))
    return success_response(alert.to_dict(), "Alert created successfully", 201)


@alerts_bp.route("/<int:alert_id>", methods=["PUT"])
@check_api_key
def update_alert(alert_id):
    """Replace an alert's configuration. Trigger state is preserved."""
    data = json_body()
    if data is None:
        return error_response("Request body must be a JSON object", 400)

    alert = current_app.alert_service.update_alert(alert_id, alert_from_dict(data))
    return success_response(alert.to_dict(), "Alert updated successfully")


@alerts_bp.route("/<int:alert_id>", methods=["DELETE"])
@check_api_key
def delete_alert(alert_id):
    current_app.alert_service.delete_alert(alert_id)
    return success_response(None, "Alert deleted successfully")


@alerts_bp.route("/<int:alert_id>/toggle", methods=["POST"])
@check_api_key
def toggle_alert(alert_id):
    enabled = parse_bool(request.args.get("enabled"))
    if enabled is None:
        return error_response("Query parameter 'enabled' must be true or false", 400)

    alert = current_app.alert_service.toggle_alert(alert_id, enabled)
    state = "enabled" if enabled else "disabled"
    return success_response(alert.to_dict(), f"Alert {state} successfully")


@alerts_bp.route("/<int:alert_id>/history", methods=["GET"])
def alert_history(alert_id):
    """Paged trigger history for one alert, newest first."""
    current_app.alert_service.get_alert(alert_id)

    page = request.args.get("page", type=int, default=0)
    size = request.args.get("size", type=int, default=current_app.config.get("HISTORY_PAGE_SIZE", 20))

    result = current_app.alert_service.get_alert_history(alert_id, page=page, size=size)
    result["content"] = [event.to_dict() for event in result["content"]]
    return success_response(result)


@alerts_bp.route("/history/recent", methods=["GET"])
def recent_history():
    events = current_app.alert_service.get_recent_history()
    return success_response([event.to_dict() for event in events])
