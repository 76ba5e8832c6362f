"""Shared helpers for the JSON API blueprints."""

from functools import wraps

from flask import current_app, jsonify, request


def check_api_key(f):
    """Decorator to check API key for protected endpoints."""
    @wraps(f)
    def decorated(*args, **kwargs):
        api_key = current_app.config.get("DASHBOARD_API_KEY")

        # If no API key configured, allow all requests (dev mode)
        if not api_key:
            return f(*args, **kwargs)

        # Check key from query param or header
        provided_key = request.args.get("key") or request.headers.get("X-API-Key")

        if provided_key != api_key:
            return error_response("Invalid or missing API key", 401)

        return f(*args, **kwargs)

    return decorated


def success_response(data=None, message=None, status=200):
    """Wrap a payload in the standard response envelope."""
    return jsonify({
        "success": True,
        "message": message,
        "data": data,
    }), status


def error_response(message, status=400):
    return jsonify({
        "success": False,
        "message": message,
        "data": None,
    }), status


def json_body():
    """Request JSON object, or None when the body is missing or not an object."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def parse_bool(value):
    """Parse a query-string flag. Returns None for unrecognised values."""
    if value is None:
        return None
    value = value.strip().lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return None
