"""Notification channels for Tempest weather alerts."""

from .email import EmailChannel, EmailMessage
from .sms import SMSChannel, SMS_MAX_LENGTH

__all__ = [
    "EmailChannel",
    "EmailMessage",
    "SMSChannel",
    "SMS_MAX_LENGTH",
]
