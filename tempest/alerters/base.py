"""Base alerter interface."""

from abc import ABC, abstractmethod

from tempest_common.store import DeliveryResult, Reading, WeatherAlert


def station_label(alert: WeatherAlert, global_label: str = "All") -> str:
    return alert.station_id if alert.station_id is not None else global_label


def format_alert_text(alert: WeatherAlert, reading: Reading, actual_value: float) -> str:
    """One-line plain text summary used for SMS and the email text part."""
    unit = alert.metric.unit
    return (
        f"ALERT: {alert.name} | {alert.metric.display_name}: "
        f"{actual_value:.1f}{unit} {alert.operator.symbol} {alert.threshold:.1f}{unit} | "
        f"Station: {station_label(alert)}"
    )


class BaseAlerter(ABC):
    """Abstract base class for alerters.

    An alerter renders the message for one channel and sends it to the
    contact stored on the alert.
    """

    channel: str = ""

    def __init__(self):
        self.alert_count = 0

    @abstractmethod
    def send_alert(
        self,
        alert: WeatherAlert,
        reading: Reading,
        actual_value: float,
    ) -> DeliveryResult:
        """
        Send a notification for a triggered alert.

        Args:
            alert: The alert whose condition matched
            reading: The reading that triggered it
            actual_value: The metric value taken from the reading

        Returns:
            DeliveryResult for this channel
        """
        pass

    def _record(self, result: DeliveryResult) -> DeliveryResult:
        if result.success:
            self.alert_count += 1
        return result

    def get_alert_count(self) -> int:
        """Return the number of alerts sent."""
        return self.alert_count
