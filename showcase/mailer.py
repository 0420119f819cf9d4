"""
Contact form relay: renders an inquiry and sends it once through Gmail SMTP.
"""

from __future__ import annotations

import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from showcase.config import Settings
from showcase.errors import ConfigurationError, ShowcaseError
from showcase.schemas import ContactRequest

logger = logging.getLogger(__name__)

_templates_dir = os.path.join(os.path.dirname(__file__), "templates")


def nl2br(value: Optional[str]) -> Markup:
    text = (value or "").replace("\r\n", "\n")
    return Markup(escape(text).replace("\n", Markup("<br>\n")))


_jinja_env = Environment(
    loader=FileSystemLoader(_templates_dir),
    autoescape=select_autoescape(["html", "xml"]),
)
_jinja_env.filters["nl2br"] = nl2br


class MailDeliveryError(ShowcaseError):
    status_code = 500
    error = "Failed to send email."


class ContactMailer:
    def __init__(
        self,
        *,
        user: Optional[str],
        password: Optional[str],
        host: str = "smtp.gmail.com",
        port: int = 587,
        subject_prefix: str = "[Portfolio]",
    ):
        self.user = user
        self.password = password
        self.host = host
        self.port = port
        self.subject_prefix = subject_prefix

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContactMailer":
        return cls(
            user=settings.gmail_user,
            password=settings.gmail_app_password,
            host=settings.smtp_host,
            port=settings.smtp_port,
            subject_prefix=settings.mail_subject_prefix,
        )

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def subject(self, contact: ContactRequest) -> str:
        subject = (
            f"{self.subject_prefix} {contact.company or ''} - "
            f"{contact.project_type or ''} inquiry"
        )
        # Header values must stay on one line.
        return " ".join(subject.split())

    def render(self, contact: ContactRequest) -> str:
        fields = {k: v or "" for k, v in contact.model_dump().items()}
        return _jinja_env.get_template("inquiry.html").render(**fields)

    def send(self, contact: ContactRequest) -> None:
        """Send the inquiry to the configured mailbox. No retries."""
        if not self.configured:
            raise ConfigurationError("Email service is not configured.")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = self.subject(contact)
        msg["From"] = self.user
        msg["To"] = self.user
        if contact.email and not any(c in contact.email for c in "\r\n"):
            msg["Reply-To"] = contact.email
        msg.attach(MIMEText(self.render(contact), "html", _charset="utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.user, [self.user], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception("SMTP send failed: %s", exc)
            raise MailDeliveryError() from exc
        logger.info("Inquiry from %s relayed to %s", contact.company or "-", self.user)
