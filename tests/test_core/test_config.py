# tests/test_core/test_config.py

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_secret_key_is_required(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_blank_secret_key_is_rejected(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "   ")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_mail_provider_follows_environment(monkeypatch):
    monkeypatch.delenv("MAIL_PROVIDER", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "production")
    assert Settings(_env_file=None).mail_provider == "smtp"

    monkeypatch.setenv("ENVIRONMENT", "development")
    assert Settings(_env_file=None).mail_provider == "console"

    monkeypatch.setenv("MAIL_PROVIDER", "SMTP")
    assert Settings(_env_file=None).mail_provider == "smtp"


def test_comma_separated_lists(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.com, http://b.com,")
    s = Settings(_env_file=None)
    assert s.cors_origins == ["http://a.com", "http://b.com"]
    assert "image/png" in s.allowed_image_types
