"""Configuration management for Tempest weather alerts."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    # Fall back to template for defaults
    template_path = Path(__file__).parent.parent / ".env.template"
    if template_path.exists():
        load_dotenv(template_path)


def _bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Application configuration."""

    # Storage
    TEMPEST_DB_PATH: str = os.getenv("TEMPEST_DB_PATH", "~/.tempest/weather.db")

    # Email settings
    SMTP_SERVER: str | None = os.getenv("SMTP_SERVER")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str | None = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD: str | None = os.getenv("SMTP_PASSWORD")
    SMTP_USE_TLS: bool = _bool("SMTP_USE_TLS", "true")
    ALERT_EMAIL_FROM: str | None = os.getenv("ALERT_EMAIL_FROM")
    ALERT_EMAIL_FROM_NAME: str = os.getenv("ALERT_EMAIL_FROM_NAME", "Tempest Weather Alerts")

    # Twilio SMS settings
    TWILIO_ENABLED: bool = _bool("TWILIO_ENABLED", "false")
    TWILIO_ACCOUNT_SID: str | None = os.getenv("TWILIO_ACCOUNT_SID")
    TWILIO_AUTH_TOKEN: str | None = os.getenv("TWILIO_AUTH_TOKEN")
    TWILIO_FROM_NUMBER: str | None = os.getenv("TWILIO_FROM_NUMBER")

    # Scheduled sweep settings
    SWEEP_INTERVAL_SECONDS: int = int(os.getenv("SWEEP_INTERVAL_SECONDS", "300"))
    SWEEP_WINDOW_MINUTES: int = int(os.getenv("SWEEP_WINDOW_MINUTES", "10"))

    # History retention
    HISTORY_RETENTION_DAYS: int = int(os.getenv("HISTORY_RETENTION_DAYS", "90"))
    CLEANUP_HOUR: int = int(os.getenv("CLEANUP_HOUR", "2"))

    # Alert defaults
    DEFAULT_COOLDOWN_MINUTES: int = int(os.getenv("DEFAULT_COOLDOWN_MINUTES", "60"))

    @classmethod
    def is_email_configured(cls) -> bool:
        """Check if an SMTP server is configured."""
        return bool(cls.SMTP_SERVER)

    @classmethod
    def is_sms_configured(cls) -> bool:
        """Check if Twilio is enabled and has credentials."""
        return bool(
            cls.TWILIO_ENABLED and
            cls.TWILIO_ACCOUNT_SID and
            cls.TWILIO_AUTH_TOKEN and
            cls.TWILIO_FROM_NUMBER
        )


config = Config()
