"""
Tests for Email Service

Tests template rendering, recipient handling and the activation and
password reset emails.
"""

import smtplib
from unittest.mock import patch

import pytest

from app.config import settings
from app.services.email_service import EmailService, MailMessage


class TestMailMessage:
    def test_to_with_name(self):
        message = MailMessage().to("ann@example.com", "Ann Lee").subject("Hello")

        assert message.recipients == ["Ann Lee <ann@example.com>"]
        assert message.subject_line == "Hello"


class TestEmailService:
    """Test email service functionality"""

    @pytest.fixture
    def email_svc(self):
        return EmailService()

    def test_send_renders_template(self, email_svc, mock_smtp):
        result = email_svc.send(
            "password_reset.html",
            {"email": "ann@example.com", "reset_link": "http://example.com/reset"},
            lambda m: m.to("ann@example.com").subject("Reset"),
        )

        assert result is True
        mock_smtp.starttls.assert_called_once()
        sent = mock_smtp.send_message.call_args[0][0]
        assert sent["Subject"] == "Reset"
        assert sent["From"] == settings.smtp_from
        assert "http://example.com/reset" in sent.get_payload()[0].get_payload(decode=True).decode()

    def test_send_without_recipients(self, email_svc, mock_smtp):
        result = email_svc.send("password_reset.html", {}, lambda m: m.subject("Nobody"))

        assert result is False
        mock_smtp.send_message.assert_not_called()

    def test_smtp_failure_returns_false(self, email_svc):
        with patch("app.services.email_service.smtplib.SMTP", side_effect=smtplib.SMTPException("down")):
            result = email_svc.send(
                "password_reset.html",
                {"email": "ann@example.com", "reset_link": "x"},
                lambda m: m.to("ann@example.com"),
            )

        assert result is False

    def test_login_only_with_credentials(self, email_svc, mock_smtp):
        email_svc.smtp_user = "mailer"
        email_svc.smtp_password = "secret"

        email_svc.send_password_reset_email("ann@example.com", 3, "code")

        mock_smtp.login.assert_called_once_with("mailer", "secret")

    def test_activation_email(self, email_svc, mock_smtp):
        result = email_svc.send_activation_email("ann@example.com", "Ann", "Lee", 7, "abc123")

        assert result is True
        sent = mock_smtp.send_message.call_args[0][0]
        assert sent["To"] == "ann@example.com"
        assert sent["Subject"] == f"Welcome to {settings.app_name}"
        html = sent.get_payload()[0].get_payload(decode=True).decode()
        assert f"{settings.app_url}/auth/activate/7/abc123" in html
        assert "Ann" in html

    def test_password_reset_email(self, email_svc, mock_smtp):
        email_svc.send_password_reset_email("ann@example.com", 7, "resetcode")

        sent = mock_smtp.send_message.call_args[0][0]
        assert sent["Subject"] == f"Password Reset - {settings.app_name}"
        html = sent.get_payload()[0].get_payload(decode=True).decode()
        assert f"{settings.app_url}/auth/password/reset/7/resetcode" in html
