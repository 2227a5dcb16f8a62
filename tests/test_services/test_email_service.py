# tests/test_services/test_email_service.py

import smtplib

import pytest

from app.core.config import settings
from app.services.email_service import (
    Attachment,
    ConsoleMailer,
    EmailDeliveryError,
    EmailService,
    OutgoingEmail,
    SMTPMailer,
    build_mailer,
)


class CollectingMailer:
    def __init__(self):
        self.sent = []

    def send(self, email):
        self.sent.append(email)


@pytest.fixture
def outbox():
    return CollectingMailer()


@pytest.fixture
def service(outbox):
    configured = settings.model_copy(update={"FRONTEND_URL": "https://shop.example.com/", "MAIL_RECEIVER": "help@x.com"})
    return EmailService(outbox, configured)


def test_reset_url_points_at_frontend(service):
    assert service.reset_url("abc123") == "https://shop.example.com/reset_password?token=abc123"


def test_password_reset_email_contains_link(service, outbox):
    service.send_password_reset("a@x.com", "abc123")
    sent = outbox.sent[0]
    assert sent.to == "a@x.com"
    assert "https://shop.example.com/reset_password?token=abc123" in sent.html


def test_welcome_email_escapes_username(service, outbox):
    service.send_welcome("<b>bob</b>", "b@x.com")
    assert "&lt;b&gt;bob&lt;/b&gt;" in outbox.sent[0].html


def test_contact_message_goes_to_receiver(service, outbox):
    service.send_contact_message("Alice", "a@x.com", "Hi", "Hello", Attachment("a.txt", b"data", "text/plain"))
    sent = outbox.sent[0]
    assert sent.to == "help@x.com"
    assert sent.sender_name == "Alice"
    assert sent.attachments[0].filename == "a.txt"


def test_contact_message_without_receiver(outbox):
    unconfigured = settings.model_copy(update={"MAIL_RECEIVER": None, "MAIL_USER": None})
    with pytest.raises(EmailDeliveryError):
        EmailService(outbox, unconfigured).send_contact_message("A", "a@x.com", "S", "M")
    assert outbox.sent == []


def test_build_mailer_selects_provider():
    assert isinstance(build_mailer(settings.model_copy(update={"MAIL_PROVIDER": "console"})), ConsoleMailer)
    smtp = build_mailer(settings.model_copy(update={"MAIL_PROVIDER": "smtp", "MAIL_USER": "shop@x.com"}))
    assert isinstance(smtp, SMTPMailer)
    assert smtp.username == "shop@x.com"
    with pytest.raises(ValueError):
        build_mailer(settings.model_copy(update={"MAIL_PROVIDER": "pigeon"}))


def test_smtp_message_has_html_and_attachment():
    mailer = SMTPMailer("smtp.example.com", 587, "shop@x.com", "secret")
    msg = mailer._build_message(OutgoingEmail(
        to="help@x.com",
        subject="Hi",
        html="<p>Hello</p>",
        sender_name="Alice",
        reply_to="a@x.com",
        attachments=[Attachment("invoice.pdf", b"%PDF", "application/pdf")],
    ))
    assert msg["To"] == "help@x.com"
    assert msg["Reply-To"] == "a@x.com"
    assert "Alice" in msg["From"]
    attachments = list(msg.iter_attachments())
    assert attachments[0].get_filename() == "invoice.pdf"
    assert attachments[0].get_content_type() == "application/pdf"


def test_smtp_without_sender_fails():
    mailer = SMTPMailer("smtp.example.com", 587, None, None)
    with pytest.raises(EmailDeliveryError):
        mailer.send(OutgoingEmail(to="a@x.com", subject="s", html="h"))


def test_smtp_connection_errors_are_wrapped(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, b"busy")

    monkeypatch.setattr(smtplib, "SMTP", refuse)
    mailer = SMTPMailer("smtp.example.com", 587, "shop@x.com", "secret")
    with pytest.raises(EmailDeliveryError):
        mailer.send(OutgoingEmail(to="a@x.com", subject="s", html="h"))


def test_smtp_header_injection_is_a_delivery_error(monkeypatch):
    def unreachable(*args, **kwargs):
        raise AssertionError("message should not reach the relay")

    monkeypatch.setattr(smtplib, "SMTP", unreachable)
    mailer = SMTPMailer("smtp.example.com", 587, "shop@x.com", "secret")
    with pytest.raises(EmailDeliveryError):
        mailer.send(OutgoingEmail(to="help@x.com", subject="Hi\r\nBcc: victim@x.com", html="h"))
