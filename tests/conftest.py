"""
GuardHub test configuration and fixtures.
"""
import os

# Set testing environment before the app reads its settings
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ENABLE_EMAIL"] = "false"
os.environ["AI_API_KEY"] = ""
os.environ["BOOTSTRAP_ADMIN_USERNAME"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from guardhub.db import Base, build_engine, get_db
from guardhub.limiter import limiter
from guardhub.main import app
from guardhub.services import mailer
from guardhub.services.bootstrap import create_user


PASSWORD = "correct-horse-battery"


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    """Session for arranging and inspecting state directly."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sent_mail(monkeypatch):
    """Capture outgoing email instead of talking SMTP."""
    sent = []

    def fake_send(to, subject, html):
        sent.append({"to": to, "subject": subject, "html": html})
        return {"success": True, "message_id": f"<test-{len(sent)}@guardhub>"}

    monkeypatch.setattr(mailer, "send_email", fake_send)
    return sent


@pytest.fixture
def make_user(db):
    def _make(username, role="security_officer", password=PASSWORD, **fields):
        return create_user(
            db,
            username=username,
            email=fields.pop("email", f"{username}@example.com"),
            password=password,
            role=role,
            **fields,
        )
    return _make


@pytest.fixture
def admin(make_user):
    return make_user("admin", role="admin", first_name="Ada", last_name="Admin")


@pytest.fixture
def supervisor(make_user):
    return make_user("sup", role="supervisor", first_name="Sam", last_name="Super")


@pytest.fixture
def officer(make_user):
    return make_user("officer", role="security_officer", first_name="Olu", last_name="Officer")


def login(client, username, password=PASSWORD):
    return client.post("/api/login", json={"username": username, "password": password})


@pytest.fixture
def as_admin(client, admin):
    assert login(client, "admin").status_code == 200
    return client


@pytest.fixture
def as_officer(client, officer):
    assert login(client, "officer").status_code == 200
    return client
