"""
Notification Service - fire-and-forget email to reporters.

Sends are scheduled as background tasks after the response is produced.
Failures are logged and never affect the request outcome.
"""

from civicpulse.core.settings import settings
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict, Optional
import logging
import smtplib

logger = logging.getLogger(__name__)


class EmailNotifier:
    """Sends plain-text emails via SMTP."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int,
        username: Optional[str],
        password: Optional[str],
        from_address: Optional[str] = None,
        from_name: str = "CivicPulse",
        use_tls: bool = True,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username or ""
        self.password = password or ""
        self.from_address = from_address or self.username or "noreply@civicpulse.local"
        self.from_name = from_name
        self.use_tls = use_tls

    @classmethod
    def from_settings(cls) -> "EmailNotifier":
        return cls(
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_address=settings.EMAIL_FROM,
        )

    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    def send_email(self, to_address: str, subject: str, body_text: str) -> Dict:
        """
        Send one email. Never raises.

        Returns:
            Dict with success flag and error if any
        """
        if not to_address:
            return {"success": False, "error": "No recipient"}
        if not self.is_configured():
            logger.info(f"Email not sent to {to_address} (SMTP not configured): {subject}")
            return {"success": False, "error": "Email credentials not configured"}

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_address}>"
        msg["To"] = to_address
        msg.attach(MIMEText(body_text, "plain", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.from_address, [to_address], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_address}: {e}")
            return {"success": False, "error": str(e)}

        logger.info(f"Email sent to {to_address}: {subject}")
        return {"success": True}

    def notify_status_change(self, to_address: str, issue_title: str, status: str) -> Dict:
        return self.send_email(
            to_address,
            f"CivicPulse - Your issue is now {status}",
            f"The status of your report \"{issue_title}\" was updated to: {status}.\n\n"
            f"Thank you for helping improve your city.",
        )

    def notify_account_banned(self, to_address: str) -> Dict:
        return self.send_email(
            to_address,
            "CivicPulse - Account removed",
            "Your account has been removed after multiple reports were confirmed as fake. "
            "This email address can no longer be used to register or log in.",
        )
