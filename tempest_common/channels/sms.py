"""Generic SMS channel using Twilio."""

import logging

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from ..store.models import DeliveryResult

logger = logging.getLogger(__name__)

SMS_MAX_LENGTH = 160


def mask_phone(phone: str) -> str:
    """Keep the last four digits of a number for log output."""
    return phone[-4:].rjust(len(phone), "*")


def truncate_sms(body: str, limit: int = SMS_MAX_LENGTH) -> str:
    if len(body) <= limit:
        return body
    return body[: limit - 3] + "..."


class SMSChannel:
    """Send SMS via Twilio."""

    name = "sms"

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        enabled: bool = True,
    ):
        """
        Initialize Twilio SMS channel.

        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_number: Twilio phone number to send from
            enabled: Master switch; a disabled channel fails every send
        """
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.enabled = enabled
        self._client = None

    @property
    def client(self) -> Client:
        """Lazy-load Twilio client."""
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def send(self, message: str, to_number: str) -> DeliveryResult:
        """
        Send an SMS message.

        Messages longer than 160 characters are truncated.

        Args:
            message: The message text
            to_number: Recipient phone number in E.164 format

        Returns:
            DeliveryResult describing success or the failure reason
        """
        if not self.is_configured():
            logger.warning(f"Twilio SMS is disabled, skipping SMS to {mask_phone(to_number or '')}")
            return DeliveryResult(self.name, False, "SMS service is not enabled")

        if not to_number:
            return DeliveryResult(self.name, False, "No recipient number")

        try:
            sent = self.client.messages.create(
                body=truncate_sms(message),
                from_=self.from_number,
                to=to_number,
            )
        except (TwilioException, OSError) as e:
            logger.error(f"SMS failed to {mask_phone(to_number)}: {e}")
            return DeliveryResult(self.name, False, f"Failed to send SMS: {e}")

        logger.info(f"SMS sent to {mask_phone(to_number)}: SID={sent.sid}")
        return DeliveryResult(self.name, True)

    def is_configured(self) -> bool:
        """Check if SMS channel is enabled and has credentials."""
        return all([
            self.enabled,
            self.account_sid,
            self.auth_token,
            self.from_number,
        ])
