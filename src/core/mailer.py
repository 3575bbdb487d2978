"""
Outbound email for password recovery.
"""
import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

# Connection timeout settings
SMTP_TIMEOUT = 30  # 30 seconds timeout
MAX_RETRIES = 3
RETRY_DELAY = 2  # 2 seconds between retries


class Mailer(Protocol):
    async def send_password_reset_link(self, email: str, link: str) -> None:
        ...


class MailConfigurationError(RuntimeError):
    pass


def validate_email_config() -> bool:
    """
    Validates that all required email configuration variables are set.

    Returns:
        bool: True if all required config is present, False otherwise
    """
    required_configs = [
        settings.mail_username,
        settings.mail_password,
        settings.mail_from,
        settings.mail_server
    ]

    missing_configs = [config for config in required_configs if not config]

    if missing_configs:
        logger.error(f"Missing email configuration: {len(missing_configs)} items")
        return False

    return True


def build_password_reset_message(email: str, link: str) -> MIMEMultipart:
    html_content = f"""
    <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2>Password recovery</h2>
                <p>We received a request to reset the password of your account.</p>
                <p style="text-align: center;">
                    <a href="{link}" style="display: inline-block; padding: 10px 20px; background-color: #ff6299;
                       color: white; text-decoration: none; border-radius: 5px;">Reset password</a>
                </p>
                <p>This link expires in <strong>{settings.password_reset_expires_minutes} minutes</strong>.</p>
                <p>If you did not request this change you can ignore this email. Your password stays the same.</p>
            </div>
        </body>
    </html>
    """

    msg = MIMEMultipart()
    msg["From"] = settings.mail_from
    msg["To"] = email
    msg["Subject"] = "Password recovery"
    msg.attach(MIMEText(html_content, "html"))
    return msg


class SMTPMailer:
    """Sends mail through the configured SMTP server, retrying on failure."""

    def _send(self, msg: MIMEMultipart) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP(settings.mail_server, settings.mail_port, timeout=SMTP_TIMEOUT) as server:
            server.ehlo()
            if settings.mail_starttls:
                server.starttls(context=context)
                server.ehlo()
            server.login(settings.mail_username, settings.mail_password)
            server.send_message(msg)

    async def send_password_reset_link(self, email: str, link: str) -> None:
        """
        Send the password reset link.

        Raises:
            MailConfigurationError: If SMTP settings are missing
            smtplib.SMTPException / OSError: If every attempt failed
        """
        if not validate_email_config():
            raise MailConfigurationError("Email configuration is incomplete")

        msg = build_password_reset_message(email, link)

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                logger.info(f"Password reset email send attempt {attempt}/{MAX_RETRIES} to {email}")
                await asyncio.to_thread(self._send, msg)
                logger.info(f"Password reset email sent successfully to {email}")
                return
            except (smtplib.SMTPException, OSError) as e:
                logger.error(f"Error sending password reset email on attempt {attempt}: {str(e)}")
                if attempt == MAX_RETRIES:
                    raise
                await asyncio.sleep(RETRY_DELAY)


def get_mailer() -> Mailer:
    return SMTPMailer()
