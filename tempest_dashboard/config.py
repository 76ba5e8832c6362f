"""Dashboard configuration."""

import os

from tempest.config import Config as AlertConfig


class Config:
    """Base configuration."""

    # Flask
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-change-in-production")
    DEBUG = os.environ.get("FLASK_DEBUG", "false").lower() == "true"

    # API access
    DASHBOARD_API_KEY = os.environ.get("DASHBOARD_API_KEY", "")

    # Storage
    TEMPEST_DB_PATH = AlertConfig.TEMPEST_DB_PATH

    # Background scheduler
    ENABLE_SCHEDULER = os.environ.get("ENABLE_SCHEDULER", "true").lower() == "true"
    SWEEP_INTERVAL_SECONDS = AlertConfig.SWEEP_INTERVAL_SECONDS

    # Log notifications for channels without SMTP/Twilio settings
    CONSOLE_ALERTS = os.environ.get("CONSOLE_ALERTS", "false").lower() == "true"

    # Pagination
    HISTORY_PAGE_SIZE = int(os.environ.get("HISTORY_PAGE_SIZE", "20"))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    CONSOLE_ALERTS = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


def get_config():
    """Get configuration based on environment."""
    env = os.environ.get("FLASK_ENV", "development")
    if env == "production":
        return ProductionConfig()
    return DevelopmentConfig()
