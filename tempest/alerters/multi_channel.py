"""Multi-channel alerter routing by notification type.

- EMAIL: email only
- SMS: SMS only
- BOTH: email and SMS, attempted independently so one failing channel
  never blocks the other
"""

import logging

from .base import BaseAlerter
from .console import ConsoleAlerter
from .email import EmailAlerter
from .sms import SMSAlerter
from ..config import config
from tempest_common.store import (
    DeliveryResult,
    NotificationOutcome,
    Reading,
    WeatherAlert,
)

logger = logging.getLogger(__name__)


class MultiChannelAlerter:
    """Route a triggered alert to the channels it asks for."""

    def __init__(
        self,
        email: BaseAlerter | None = None,
        sms: BaseAlerter | None = None,
    ):
        self.email = email or EmailAlerter()
        self.sms = sms or SMSAlerter()
        self.alert_count = 0

    def _dispatch(
        self,
        alerter: BaseAlerter,
        alert: WeatherAlert,
        reading: Reading,
        actual_value: float,
    ) -> DeliveryResult:
        try:
            result = alerter.send_alert(alert, reading, actual_value)
        except Exception as e:
            logger.exception(f"{alerter.channel} notification crashed for alert {alert.id}")
            return DeliveryResult(alerter.channel, False, str(e) or e.__class__.__name__)

        if not result.success:
            logger.error(f"{result.channel} notification failed for alert {alert.id}: {result.error}")
        return result

    def notify(
        self,
        alert: WeatherAlert,
        reading: Reading,
        actual_value: float,
    ) -> NotificationOutcome:
        """Send through every channel the alert's notification type selects."""
        outcome = NotificationOutcome()

        if alert.notification_type.uses_email:
            outcome.email = self._dispatch(self.email, alert, reading, actual_value)

        if alert.notification_type.uses_sms:
            outcome.sms = self._dispatch(self.sms, alert, reading, actual_value)

        if outcome.sent:
            self.alert_count += 1
        return outcome

    def get_alert_count(self) -> int:
        """Return number of alerts fully delivered."""
        return self.alert_count

    def get_summary(self) -> dict:
        return {
            "total": self.alert_count,
            "channels": {
                "email": self.email.get_alert_count(),
                "sms": self.sms.get_alert_count(),
            },
        }


def create_alerter_from_config(console_fallback: bool = False) -> MultiChannelAlerter:
    """
    Build the alerter from configuration.

    Unconfigured channels still use the real alerter so their sends are
    recorded as failures. With console_fallback they are logged to the
    console instead (development).
    """
    email: BaseAlerter = EmailAlerter()
    sms: BaseAlerter = SMSAlerter()

    if console_fallback:
        if not config.is_email_configured():
            logger.info("SMTP not configured - email alerts go to the console")
            email = ConsoleAlerter("email")
        if not config.is_sms_configured():
            logger.info("Twilio not configured - SMS alerts go to the console")
            sms = ConsoleAlerter("sms")

    return MultiChannelAlerter(email=email, sms=sms)
