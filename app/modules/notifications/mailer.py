"""SMTP delivery for transactional email."""
import logging
import smtplib
from email.message import EmailMessage
from fastapi import Request

from app.config.settings import Settings
from app.modules.notifications.templates import WELCOME_SUBJECT, render_welcome_html, render_welcome_text

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _build_message(self, to_email: str, subject: str, text_body: str, html_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.settings.smtp_from
        msg["To"] = to_email
        if self.settings.welcome_email_cc:
            msg["Cc"] = self.settings.welcome_email_cc
        msg.set_content(text_body)
        msg.add_alternative(html_body, subtype="html")
        return msg

    def send(self, to_email: str, subject: str, text_body: str, html_body: str) -> bool:
        """Deliver one message. Never raises; returns whether the SMTP server accepted it."""
        if not self.settings.smtp_configured:
            logger.warning(f"SMTP not configured, not sending '{subject}' to {to_email}")
            return False

        msg = self._build_message(to_email, subject, text_body, html_body)
        recipients = [to_email]
        if self.settings.welcome_email_cc:
            recipients.append(self.settings.welcome_email_cc)
        if self.settings.welcome_email_bcc:
            recipients.append(self.settings.welcome_email_bcc)

        try:
            with smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.smtp_timeout_seconds
            ) as smtp:
                smtp.starttls()
                smtp.login(self.settings.smtp_user, self.settings.smtp_password)
                smtp.send_message(msg, to_addrs=recipients)
            logger.info(f"Email '{subject}' sent to {to_email}")
            return True
        except smtplib.SMTPAuthenticationError:
            logger.exception("SMTP auth failed for %s", self.settings.smtp_user)
            return False
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s", to_email)
            return False

    def send_welcome_email(self, to_email: str, name: str) -> bool:
        return self.send(
            to_email,
            WELCOME_SUBJECT,
            render_welcome_text(name),
            render_welcome_html(name),
        )


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer
