"""Shared fixtures: in-memory SQLite, local disk storage and a recording mailer."""

import os
import tempfile

os.environ.update({
    "DATABASE_URL": "sqlite://",
    "SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
    "BCRYPT_ROUNDS": "4",
    "ADMIN_EMAIL": "admin@domus.com",
    "ADMIN_PASSWORD": "admin-password",
    "SMTP_HOST": "",
    "STORAGE_BACKEND": "local",
    "MEDIA_ROOT": tempfile.mkdtemp(prefix="domus-media-"),
    "BASE_URL": "http://testserver",
    "FRONTEND_URL": "http://frontend.test",
    "SEED_ON_STARTUP": "False",
    "FORGOT_PASSWORD_REVEALS_UNKNOWN_EMAIL": "False",
    "PROFILE_DELETE_CASCADES_ADDRESS": "True",
})

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from domus.core.bootstrap import seed_admin, seed_geography, seed_roles
from domus.core.config import settings
from domus.core.database import get_db
from domus.main import app
from domus.models import Base
from domus.models.geography import City, PostalCode
from domus.utils.email import get_email_sender
from domus.utils.file_storage import LocalDiskStorage, get_storage

ADMIN_EMAIL = "admin@domus.com"
ADMIN_PASSWORD = "admin-password"


class RecordingEmailSender:
    def __init__(self):
        self.sent = []

    async def send_password_recovery(self, to, reset_url):
        self.sent.append((to, reset_url))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_roles(session)
    seed_admin(session, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    seed_geography(session)
    yield session
    session.close()


@pytest.fixture
def city(db):
    """CABA with postal code C1425 (province 02)."""
    caba = City(id="CABA", name="Ciudad Autónoma de Buenos Aires", province_id="02")
    db.add(caba)
    db.flush()
    postal_code = PostalCode(code="C1425", city_id="CABA")
    db.add(postal_code)
    db.commit()
    return {"city_id": caba.id, "postal_code_id": postal_code.id}


@pytest.fixture
def storage(tmp_path):
    return LocalDiskStorage(tmp_path / "media", "http://testserver")


@pytest.fixture
def mailer():
    return RecordingEmailSender()


@pytest.fixture
def client(db, session_factory, storage, mailer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_email_sender] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


# ─── Helpers ──────────────────────────────────────────────────────────────────

def login(client, email, password):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def register_and_login(client, email, password="s3cret-pass"):
    response = client.post("/api/v1/auth/register", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    body = login(client, email, password)
    return body["user"]["id"], auth_headers(body["access_token"])


@pytest.fixture
def admin_headers(client):
    return auth_headers(login(client, ADMIN_EMAIL, ADMIN_PASSWORD)["access_token"])


def collect_keys(value):
    """Every dict key at any depth of a decoded JSON document."""
    keys = set()
    if isinstance(value, dict):
        for key, item in value.items():
            keys.add(key)
            keys |= collect_keys(item)
    elif isinstance(value, list):
        for item in value:
            keys |= collect_keys(item)
    return keys
