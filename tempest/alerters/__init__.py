"""Alerter implementations for Tempest weather alerts."""

from .base import BaseAlerter, format_alert_text
from .console import ConsoleAlerter
from .email import EmailAlerter
from .sms import SMSAlerter
from .multi_channel import MultiChannelAlerter, create_alerter_from_config

__all__ = [
    "BaseAlerter",
    "ConsoleAlerter",
    "EmailAlerter",
    "SMSAlerter",
    "MultiChannelAlerter",
    "create_alerter_from_config",
    "format_alert_text",
]
