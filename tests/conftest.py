"""Shared fixtures and utilities for tests."""

import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the test environment must exist first
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="recruitcrm-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_ROOT / 'test.db'}")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("STORAGE_LOCAL_PATH", str(_TEST_ROOT / "storage"))
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("RESEND_API_KEY", "")
os.environ.setdefault("CONTACT_RECIPIENT", "inbox@example.com")
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from recruitcrm.core.security import get_password_hash
from recruitcrm.core.session import sessions
from recruitcrm.db.base import Base
from recruitcrm.db.session import SessionLocal, engine
from recruitcrm.main import app as fastapi_app
from recruitcrm.models import User
from recruitcrm.services.ai_client import AIClientError, Generation, get_ai_client
from recruitcrm.services.email import EmailError, get_mailer
from recruitcrm.services.enrichment import ScrapeError, get_page_fetcher
from recruitcrm.services.storage import StorageError, get_cv_bucket

DEFAULT_PASSWORD = "secret123"


# ============== Fakes ==============


class FakeAIClient:
    """Stands in for GeminiClient; returns a canned answer or fails."""

    def __init__(self, text: str = "", error: str = None, token_usage: dict = None):
        self.text = text
        self.error = error
        self.token_usage = token_usage or {
            "promptTokens": 10,
            "candidatesTokens": 5,
            "totalTokens": 15,
        }
        self.calls = []

    def generate(self, prompt, document=None, mime_type=None):
        self.calls.append({"prompt": prompt, "document": document, "mime_type": mime_type})
        if self.error:
            raise AIClientError(self.error)
        return Generation(text=self.text, token_usage=self.token_usage)


class MemoryBucket:
    """In-memory CV bucket."""

    def __init__(self, fail_upload: bool = False, fail_remove: bool = False):
        self.files = {}
        self.removed = []
        self.fail_upload = fail_upload
        self.fail_remove = fail_remove

    def upload(self, path, data, content_type):
        if self.fail_upload:
            raise StorageError("Bucket not found")
        if path in self.files:
            raise StorageError("The resource already exists")
        self.files[path] = (data, content_type)
        return path

    def remove(self, paths):
        if self.fail_remove:
            raise StorageError("Bucket unavailable")
        for path in paths:
            self.removed.append(path)
            self.files.pop(path, None)

    def public_url(self, path):
        return f"https://files.example.com/cv/{path}"


class FakeFetcher:
    def __init__(self, content: str = "", error: str = None):
        self.content = content
        self.error = error
        self.urls = []

    def fetch(self, url):
        self.urls.append(url)
        if self.error:
            raise ScrapeError(self.error)
        return self.content


class FakeMailer:
    def __init__(self, error: str = None):
        self.error = error
        self.sent = []

    def send(self, to, subject, html, text=None):
        if self.error:
            raise EmailError(self.error)
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return True


# ============== Fixtures ==============


@pytest.fixture
def app():
    """Application with a fresh schema and no live sessions."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    sessions._sessions.clear()
    fastapi_app.dependency_overrides.clear()
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    sessions._sessions.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def override(app):
    """Install a fake for a FastAPI dependency: ``override(get_mailer, mailer)``."""

    def _override(dependency, fake):
        app.dependency_overrides[dependency] = lambda: fake
        return fake

    return _override


@pytest.fixture
def ai_client(override):
    return override(get_ai_client, FakeAIClient())


@pytest.fixture
def bucket(override):
    return override(get_cv_bucket, MemoryBucket())


@pytest.fixture
def fetcher(override):
    return override(get_page_fetcher, FakeFetcher())


@pytest.fixture
def mailer(override):
    return override(get_mailer, FakeMailer())


@pytest.fixture
def make_user(app):
    """Create a role record; pass ``password`` to also create the account."""

    def _make_user(email, role="Viewer", password=None, first_name="Test", last_name="User"):
        db = SessionLocal()
        try:
            user = User(
                email=email,
                role=role,
                first_name=first_name,
                last_name=last_name,
                hashed_password=get_password_hash(password) if password else None,
            )
            db.add(user)
            db.commit()
            return user.id
        finally:
            db.close()

    return _make_user


@pytest.fixture
def login(client):
    """Sign in and return bearer headers."""

    def _login(email, password=DEFAULT_PASSWORD):
        response = client.post(
            "/api/auth/login",
            data={"username": email, "password": password},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture
def admin_headers(make_user, login):
    make_user("admin@example.com", role="Admin", password=DEFAULT_PASSWORD)
    return login("admin@example.com")


@pytest.fixture
def viewer_headers(make_user, login):
    make_user("viewer@example.com", role="Viewer", password=DEFAULT_PASSWORD)
    return login("viewer@example.com")


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()
