"""Console alerter for development and testing."""

import logging

from .base import BaseAlerter, format_alert_text
from tempest_common.store import DeliveryResult, Reading, WeatherAlert

logger = logging.getLogger(__name__)


class ConsoleAlerter(BaseAlerter):
    """Logs alerts instead of delivering them - useful for development."""

    def __init__(self, channel: str = "console"):
        super().__init__()
        self.channel = channel
        self.alerts: list[dict] = []

    def send_alert(
        self,
        alert: WeatherAlert,
        reading: Reading,
        actual_value: float,
    ) -> DeliveryResult:
        """Log the rendered alert."""
        text = format_alert_text(alert, reading, actual_value)
        self.alerts.append({
            "alert_id": alert.id,
            "reading_id": reading.id,
            "station_id": reading.station_id,
            "actual_value": actual_value,
            "message": text,
        })

        logger.info(f"[{self.channel.upper()}] {text}")
        return self._record(DeliveryResult(self.channel, True))
