"""Generic email channel using SMTP."""

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from ..store.models import DeliveryResult

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    """Email message content."""
    subject: str
    text_body: str
    html_body: str | None = None


class EmailChannel:
    """Send emails via SMTP."""

    name = "email"

    def __init__(
        self,
        smtp_server: str | None,
        smtp_port: int = 587,
        smtp_username: str | None = None,
        smtp_password: str | None = None,
        from_address: str | None = None,
        from_name: str | None = None,
        use_tls: bool = True,
        timeout: float = 30.0,
    ):
        """
        Initialize SMTP email channel.

        Args:
            smtp_server: SMTP server hostname
            smtp_port: SMTP server port (587 for TLS, 465 for SSL, 25 for plain)
            smtp_username: SMTP authentication username
            smtp_password: SMTP authentication password
            from_address: Sender email address
            from_name: Display name for the sender
            use_tls: Whether to use STARTTLS (for port 587)
            timeout: Socket timeout in seconds
        """
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_address = from_address or f"tempest-alerts@{smtp_server or 'localhost'}"
        self.from_name = from_name
        self.use_tls = use_tls
        self.timeout = timeout

    def _build(self, message: EmailMessage, recipients: list[str]) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = formataddr((self.from_name, self.from_address)) if self.from_name else self.from_address
        msg["To"] = ", ".join(recipients)

        # Text part first so clients prefer the HTML part when present
        msg.attach(MIMEText(message.text_body, "plain", "utf-8"))
        if message.html_body:
            msg.attach(MIMEText(message.html_body, "html", "utf-8"))
        return msg

    def send(self, message: EmailMessage, to_addresses: list[str]) -> DeliveryResult:
        """
        Send an email.

        Args:
            message: The email message content
            to_addresses: Recipient addresses

        Returns:
            DeliveryResult describing success or the failure reason
        """
        if not self.is_configured():
            return DeliveryResult(self.name, False, "Email service is not configured")

        recipients = [a for a in to_addresses if a]
        if not recipients:
            return DeliveryResult(self.name, False, "No recipient address")

        msg = self._build(message, recipients)

        try:
            if self.smtp_port == 465:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(
                    self.smtp_server, self.smtp_port, context=context, timeout=self.timeout
                ) as server:
                    if self.smtp_username and self.smtp_password:
                        server.login(self.smtp_username, self.smtp_password)
                    server.sendmail(self.from_address, recipients, msg.as_string())
            else:
                with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                    if self.use_tls:
                        server.starttls()
                    if self.smtp_username and self.smtp_password:
                        server.login(self.smtp_username, self.smtp_password)
                    server.sendmail(self.from_address, recipients, msg.as_string())

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {', '.join(recipients)}: {e}")
            return DeliveryResult(self.name, False, f"Failed to send email: {e}")

        logger.info(f"Email sent to {len(recipients)} recipient(s)")
        return DeliveryResult(self.name, True)

    def is_configured(self) -> bool:
        """Check if email channel is properly configured."""
        return bool(self.smtp_server)
