"""Flask application factory for the Tempest weather alerts API."""

import logging
import os

from flask import Flask

from .config import get_config
from tempest.alerters import create_alerter_from_config
from tempest.alerts import AlertService
from tempest.evaluator import AlertEvaluator
from tempest.scheduler import AlertScheduler
from tempest.weather import WeatherService
from tempest_common.store import WeatherStore

logger = logging.getLogger(__name__)


def create_app(config=None):
    """Create and configure the Flask application.

    Args:
        config: Optional configuration object or dict. A dict is applied on
            top of the environment defaults.

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.config.from_object(get_config())

    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    # Services share one store and one evaluator
    store = WeatherStore(db_path=app.config.get("TEMPEST_DB_PATH"))
    alerter = create_alerter_from_config(console_fallback=app.config.get("CONSOLE_ALERTS", False))
    evaluator = AlertEvaluator(store, alerter=alerter)

    app.store = store
    app.weather_service = WeatherService(store, evaluator=evaluator)
    app.alert_service = AlertService(store)
    app.scheduler = AlertScheduler(
        store,
        evaluator=evaluator,
        sweep_interval_seconds=app.config.get("SWEEP_INTERVAL_SECONDS"),
    )

    # Register blueprints
    from .routes.weather import weather_bp
    from .routes.alerts import alerts_bp
    from .routes.stations import stations_bp

    app.register_blueprint(weather_bp, url_prefix="/api/weather")
    app.register_blueprint(alerts_bp, url_prefix="/api/alerts")
    app.register_blueprint(stations_bp, url_prefix="/api/stations")

    if app.config.get("ENABLE_SCHEDULER"):
        app.scheduler.start()
        logger.info("Background alert scheduler started")

    return app


def run_dev_server():
    """Run development server."""
    app = create_app()
    try:
        app.run(
            host="0.0.0.0",
            port=int(os.environ.get("PORT", 5000)),
            debug=True,
            use_reloader=False,
        )
    finally:
        app.scheduler.stop()


if __name__ == "__main__":
    run_dev_server()
