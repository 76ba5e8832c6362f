"""Email alerter using SMTP."""

from .base import BaseAlerter, format_alert_text, station_label
from ..config import config
from tempest_common.channels import EmailChannel, EmailMessage
from tempest_common.store import DeliveryResult, Reading, WeatherAlert


class EmailAlerter(BaseAlerter):
    """Send alert emails to the address configured on each alert."""

    channel = "email"

    def __init__(self, email_channel: EmailChannel | None = None):
        """
        Initialize email alerter.

        Args:
            email_channel: SMTP channel to send through (defaults to one
                built from SMTP_* configuration)
        """
        super().__init__()
        self.email_channel = email_channel or EmailChannel(
            smtp_server=config.SMTP_SERVER,
            smtp_port=config.SMTP_PORT,
            smtp_username=config.SMTP_USERNAME,
            smtp_password=config.SMTP_PASSWORD,
            from_address=config.ALERT_EMAIL_FROM,
            from_name=config.ALERT_EMAIL_FROM_NAME,
            use_tls=config.SMTP_USE_TLS,
        )

    def _format_subject(self, alert: WeatherAlert) -> str:
        return f"Weather Alert: {alert.name}"

    def _format_html_body(self, alert: WeatherAlert, reading: Reading, actual_value: float) -> str:
        """Format email body as HTML."""
        unit = alert.metric.unit
        timestamp = reading.timestamp.strftime("%b %d, %Y %H:%M:%S")

        html = f"""
        <html>
        <body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
            <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 30px; text-align: center; border-radius: 8px 8px 0 0;">
                <h1 style="color: white; margin: 0; font-size: 28px;">Weather Alert</h1>
            </div>
            <div style="background: #f7f7f7; padding: 30px; border-radius: 0 0 8px 8px;">
                <div style="background: white; padding: 25px; border-radius: 8px;">
                    <h2 style="color: #ff6b6b; margin-top: 0;">{alert.name}</h2>
                    <p style="font-size: 16px; margin: 10px 0;">
                        <strong>Station:</strong> {station_label(alert, "All Stations")}
                    </p>
                    <p style="font-size: 16px; margin: 10px 0;">
                        <strong>Condition:</strong> {alert.describe_condition()}
                    </p>
                    <p style="font-size: 18px; margin: 15px 0; padding: 15px; background: #fff3cd; border-left: 4px solid #ffc107;">
                        <strong>Current Value:</strong> <span style="color: #ff6b6b; font-size: 22px;">{actual_value:.2f} {unit}</span>
                    </p>
                    <p style="font-size: 14px; color: #666; margin: 10px 0;">
                        <strong>Time:</strong> {timestamp}
                    </p>
                </div>
                <p style="font-size: 12px; color: #999; text-align: center; margin: 20px 0 0;">
                    This is an automated alert from your Tempest Weather Station system.
                </p>
            </div>
        </body>
        </html>
        """
        return html

    def _format_text_body(self, alert: WeatherAlert, reading: Reading, actual_value: float) -> str:
        timestamp = reading.timestamp.strftime("%b %d, %Y %H:%M:%S")
        return (
            f"{format_alert_text(alert, reading, actual_value)}\n"
            f"Time: {timestamp}\n\n"
            "This is an automated alert from your Tempest Weather Station system."
        )

    def send_alert(
        self,
        alert: WeatherAlert,
        reading: Reading,
        actual_value: float,
    ) -> DeliveryResult:
        """Send the alert email to the alert's user_email."""
        message = EmailMessage(
            subject=self._format_subject(alert),
            text_body=self._format_text_body(alert, reading, actual_value),
            html_body=self._format_html_body(alert, reading, actual_value),
        )
        to_addresses = [alert.user_email] if alert.user_email else []
        return self._record(self.email_channel.send(message, to_addresses))

    def is_configured(self) -> bool:
        return self.email_channel.is_configured()
