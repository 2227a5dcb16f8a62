# tests/conftest.py - shared fixtures: in-memory app, fake mailer, auth helpers

import os

# Settings are read at import time; the app refuses to start without a secret
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MAIL_PROVIDER", "console")
os.environ.setdefault("MAIL_RECEIVER", "support@amazon-clone.com")
os.environ.setdefault("FRONTEND_URL", "http://localhost:5173")

import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.crud import user as crud_user
from app.db.session import build_engine
from app.main import create_app
from app.services.email_service import EmailDeliveryError


class RecordingMailer:
    """Captures outgoing emails; set `fail = True` to simulate a provider outage"""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, email):
        if self.fail:
            raise EmailDeliveryError("SMTP connection refused")
        self.sent.append(email)


class FakeImageStorage:
    def __init__(self):
        self.uploads = []

    def upload_product_image(self, content, original_filename):
        self.uploads.append((original_filename, content))
        return f"https://images.example.com/products/{len(self.uploads)}.jpg"


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def image_storage():
    return FakeImageStorage()


@pytest.fixture
def app(mailer, image_storage):
    engine = build_engine("sqlite://")
    application = create_app(settings=settings, engine=engine, mailer=mailer, image_storage=image_storage)
    yield application
    engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def login_as(client):
    """Sign up (if needed) and log in; returns the bearer token"""
    def _login(username="alice", email="a@x.com", password="pw123"):
        client.post("/api/signup", json={"username": username, "email": email, "password": password})
        res = client.post("/api/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        return res.json()["token"]
    return _login


@pytest.fixture
def user_token(login_as):
    return login_as()


@pytest.fixture
def auth_headers(user_token):
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def admin_headers(client, db):
    crud_user.ensure_admin(db, "admin@x.com", "admin-pass", "admin")
    res = client.post("/api/login", json={"email": "admin@x.com", "password": "admin-pass"})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}
