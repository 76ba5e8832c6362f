"""SMS alerter using Twilio.

Messages are the single-line alert summary, truncated by the channel to
160 characters.
"""

from .base import BaseAlerter, format_alert_text
from ..config import config
from tempest_common.channels import SMSChannel
from tempest_common.store import DeliveryResult, Reading, WeatherAlert


class SMSAlerter(BaseAlerter):
    """Send alert text messages to the phone number configured on each alert."""

    channel = "sms"

    def __init__(self, sms_channel: SMSChannel | None = None):
        """
        Initialize Twilio SMS alerter.

        Args:
            sms_channel: Twilio channel to send through (defaults to one
                built from TWILIO_* configuration)
        """
        super().__init__()
        self.sms_channel = sms_channel or SMSChannel(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_FROM_NUMBER,
            enabled=config.TWILIO_ENABLED,
        )

    def send_alert(
        self,
        alert: WeatherAlert,
        reading: Reading,
        actual_value: float,
    ) -> DeliveryResult:
        """Send the alert SMS to the alert's user_phone."""
        message = format_alert_text(alert, reading, actual_value)
        return self._record(self.sms_channel.send(message, alert.user_phone))

    def is_configured(self) -> bool:
        return self.sms_channel.is_configured()
