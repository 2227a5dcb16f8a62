# app/services/email_service.py
"""
Transactional email.

A ``Mailer`` delivers an already-rendered ``OutgoingEmail``; which mailer is
used is decided once from settings by ``build_mailer``. ``EmailService``
renders the HTML templates and is what route handlers depend on.
"""

import logging
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr
from typing import List, Optional

from jinja2 import Environment

from app.core.config import Settings

logger = logging.getLogger(__name__)

# Autoescaping keeps user-supplied contact form text from injecting markup
_jinja = Environment(autoescape=True)


class EmailDeliveryError(Exception):
    """The provider could not accept the message"""


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    html: str
    sender_name: Optional[str] = None
    reply_to: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)


class SMTPMailer:
    """Delivers through an SMTP relay (Gmail by default)"""

    def __init__(self, host: str, port: int, username: Optional[str], password: Optional[str],
                 use_tls: bool = True, timeout: int = 10):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, email: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = email.subject
        msg["From"] = formataddr((email.sender_name, self.username)) if email.sender_name else self.username
        msg["To"] = email.to
        if email.reply_to:
            msg["Reply-To"] = email.reply_to
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(email.html, subtype="html")
        for attachment in email.attachments:
            maintype, _, subtype = attachment.content_type.partition("/")
            msg.add_attachment(
                attachment.content,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return msg

    def send(self, email: OutgoingEmail) -> None:
        if not self.username:
            raise EmailDeliveryError("SMTP sender (MAIL_USER) is not configured")
        try:
            msg = self._build_message(email)
        except ValueError as e:
            # header values with CR/LF are refused by the email package
            raise EmailDeliveryError(f"Invalid message headers: {e}") from e
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(str(e)) from e


class ConsoleMailer:
    """Development mailer: logs the message instead of sending it"""

    def send(self, email: OutgoingEmail) -> None:
        logger.info(
            f"[console mail] to={email.to} subject={email.subject!r} "
            f"attachments={[a.filename for a in email.attachments]}"
        )


def build_mailer(settings: Settings):
    provider = settings.mail_provider
    if provider == "smtp":
        return SMTPMailer(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.MAIL_USER,
            password=settings.MAIL_PASS,
            use_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        )
    if provider == "console":
        return ConsoleMailer()
    raise ValueError(f"Unknown MAIL_PROVIDER: {provider}")


WELCOME_TEMPLATE = _jinja.from_string("""
<h2>Welcome to Amazon Clone, {{ username }}!</h2>
<p>Your account has been created with the email <strong>{{ email }}</strong>.</p>
<p>Start shopping at <a href="{{ frontend_url }}">{{ frontend_url }}</a>.</p>
""")

PASSWORD_RESET_TEMPLATE = _jinja.from_string("""
<p>You are receiving this because you (or someone else) have requested the reset of the password for your account.</p>
<p>Please click on the following link, or paste this into your browser to complete the process:</p>
<p><a href="{{ reset_url }}">{{ reset_url }}</a></p>
<p>This link will expire in {{ expires_minutes }} minutes.</p>
<p>If you did not request this, please ignore this email and your password will remain unchanged.</p>
""")

PAYMENT_SUCCESS_TEMPLATE = _jinja.from_string("""
<h2>Payment successful</h2>
<p>Hi {{ username }},</p>
<p>We have received your payment of <strong>₹{{ "%.2f"|format(amount) }}</strong>. Thank you for shopping with us!</p>
""")

CONTACT_TEMPLATE = _jinja.from_string("""
<p><strong>Name:</strong> {{ name }}</p>
<p><strong>Email:</strong> {{ email }}</p>
<p><strong>Subject:</strong> {{ subject }}</p>
<p><strong>Message:</strong><br>{{ message }}</p>
""")


class EmailService:
    """Renders and sends the app's transactional emails"""

    def __init__(self, mailer, settings: Settings):
        self.mailer = mailer
        self.settings = settings

    def send_welcome(self, username: str, email: str) -> None:
        html = WELCOME_TEMPLATE.render(username=username, email=email, frontend_url=self.settings.FRONTEND_URL)
        self.mailer.send(OutgoingEmail(to=email, subject="Welcome to Amazon Clone", html=html))
        logger.info(f"Welcome email sent to user {username}")

    def reset_url(self, token: str) -> str:
        return f"{self.settings.FRONTEND_URL.rstrip('/')}/reset_password?token={token}"

    def send_password_reset(self, email: str, token: str) -> None:
        html = PASSWORD_RESET_TEMPLATE.render(
            reset_url=self.reset_url(token),
            expires_minutes=self.settings.RESET_TOKEN_EXPIRE_MINUTES,
        )
        self.mailer.send(OutgoingEmail(to=email, subject="Password Reset Request for Amazon Clone", html=html))

    def send_payment_success(self, email: str, username: str, amount: float) -> None:
        html = PAYMENT_SUCCESS_TEMPLATE.render(username=username, amount=amount)
        self.mailer.send(OutgoingEmail(to=email, subject="Payment Successful - Amazon Clone", html=html))

    def send_contact_message(self, name: str, email: str, subject: str, message: str,
                             attachment: Optional[Attachment] = None) -> None:
        receiver = self.settings.MAIL_RECEIVER or self.settings.MAIL_USER
        if not receiver:
            raise EmailDeliveryError("MAIL_RECEIVER is not configured")
        html = CONTACT_TEMPLATE.render(name=name, email=email, subject=subject, message=message)
        self.mailer.send(OutgoingEmail(
            to=receiver,
            subject=subject,
            html=html,
            sender_name=name,
            reply_to=email,
            attachments=[attachment] if attachment else [],
        ))
