import os

# Settings are read at import time, so the environment is pinned first
os.environ["SECRET_KEY"] = "test-secret-key-for-the-lawhelp-suite-0123456789"
os.environ["ENV"] = "test"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SEED_DATABASE"] = "false"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ.pop("DATABASE_URL", None)

import pytest
from fastapi.testclient import TestClient

from lawhelp.core.dependencies import get_ai_service
from lawhelp.core.exceptions import AIServiceError
from lawhelp.main import app
from lawhelp.services.ai_service import LegalResponse
from lawhelp.services.two_factor_service import two_factor_service
from lawhelp.storage import MemoryStorage

EMAIL_CODE = "123456"
PASSWORD = "Password123"


class FakeAIService:
    """Stands in for the OpenAI-backed service."""

    def __init__(self):
        self.calls = []
        self.fail = False

    async def process_legal_query(self, question, context=None, language="en"):
        self.calls.append({"question": question, "context": context, "language": language})
        if self.fail:
            raise AIServiceError("completion API unavailable")
        return LegalResponse(
            answer=f"Answer to: {question}",
            category="Family Law",
            confidence=0.9,
            references=["Cameroon Civil Code, Article 212"],
            disclaimer="General information only.",
        )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def fake_ai():
    return FakeAIService()


@pytest.fixture
def client(storage, fake_ai, monkeypatch):
    monkeypatch.setattr(two_factor_service, "generate_email_code", lambda: EMAIL_CODE)
    app.state.storage = storage
    app.dependency_overrides[get_ai_service] = lambda: fake_ai
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.storage = None


def register_user(client, email="amina@example.cm", name="Amina Tchoua", password=PASSWORD):
    response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()["data"]["user_id"]


def verify_user(client, user_id):
    response = client.post("/api/auth/verify-email", json={"user_id": user_id, "code": EMAIL_CODE})
    assert response.status_code == 200, response.text


def login(client, email="amina@example.cm", password=PASSWORD):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(client):
    """Register, verify and log in a user; returns (user_id, headers)."""

    def _make(email="amina@example.cm", name="Amina Tchoua"):
        user_id = register_user(client, email=email, name=name)
        verify_user(client, user_id)
        token = login(client, email=email)["token"]
        return user_id, auth_headers(token)

    return _make
