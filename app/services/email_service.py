"""
Email Service

Sends account emails (activation, password reset) through SMTP, rendering
Jinja2 templates from ``templates/emails``.
"""

import logging
import smtplib
from collections.abc import Callable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent.parent / "templates" / "emails"


class MailMessage:
    """Envelope filled in by the ``configure_message`` callback of ``EmailService.send``"""

    def __init__(self):
        self.recipients: list[str] = []
        self.subject_line = ""

    def to(self, address: str, name: str | None = None) -> "MailMessage":
        self.recipients.append(f"{name} <{address}>" if name else address)
        return self

    def subject(self, text: str) -> "MailMessage":
        self.subject_line = text
        return self


class EmailService:
    """Service for sending emails with template support"""

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )

        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.smtp_from = settings.smtp_from

    def _send_email(
        self,
        to_email: str | list[str],
        subject: str,
        html_body: str,
        text_body: str | None = None,
    ) -> bool:
        """
        Send an email using SMTP.

        Args:
            to_email: Recipient email address(es)
            subject: Email subject
            html_body: HTML email body
            text_body: Plain text email body (optional)

        Returns:
            bool: True if email sent successfully, False otherwise
        """
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = self.smtp_from
            msg["To"] = to_email if isinstance(to_email, str) else ", ".join(to_email)

            if text_body:
                msg.attach(MIMEText(text_body, "plain"))
            msg.attach(MIMEText(html_body, "html"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            logger.info("Email '%s' sent to %s", subject, msg["To"])
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email: {e}")
            return False

    def send(
        self,
        template: str,
        data: dict[str, Any],
        configure_message: Callable[[MailMessage], Any],
    ) -> bool:
        """
        Render ``template`` with ``data`` and send it.

        ``configure_message`` receives a MailMessage and sets its recipients
        and subject. Delivery is fire-and-forget: failures are logged and
        reported as False.
        """
        message = MailMessage()
        configure_message(message)
        if not message.recipients:
            logger.error("Email '%s' has no recipients, not sent", template)
            return False

        html_body = self.env.get_template(template).render(app_name=settings.app_name, **data)
        return self._send_email(
            to_email=message.recipients,
            subject=message.subject_line,
            html_body=html_body,
        )

    def send_activation_email(
        self,
        to_email: str,
        first_name: str | None,
        last_name: str | None,
        user_id: int,
        activation_code: str,
    ) -> bool:
        """Send the welcome email carrying the account activation link."""
        data = {
            "first_name": first_name or "",
            "last_name": last_name or "",
            "activation_link": f"{settings.app_url}/auth/activate/{user_id}/{activation_code}",
        }
        return self.send(
            "welcome.html",
            data,
            lambda m: m.to(to_email).subject(f"Welcome to {settings.app_name}"),
        )

    def send_password_reset_email(self, to_email: str, user_id: int, reset_code: str) -> bool:
        """Send the link to the password reset form."""
        data = {
            "email": to_email,
            "reset_link": f"{settings.app_url}/auth/password/reset/{user_id}/{reset_code}",
        }
        return self.send(
            "password_reset.html",
            data,
            lambda m: m.to(to_email).subject(f"Password Reset - {settings.app_name}"),
        )


# Global email service instance
email_service = EmailService()
