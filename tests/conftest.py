"""Shared fixtures.

External services are replaced by in-process fakes:
- identity provider: FakeIdentityProvider (in-memory accounts)
- documents: SqliteDocumentStore in tmp_path
- storage: LocalObjectStorage in tmp_path
- model: MagicMock LLM client
"""

from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from studyhub.auth.errors import AuthError
from studyhub.auth.identity import IdentityUser
from studyhub.auth.service import AuthService
from studyhub.config.app_config import AppConfig, clear_config_cache
from studyhub.db.documents import SqliteDocumentStore
from studyhub.prompts.registry import clear_cache as clear_prompt_cache
from studyhub.storage.object_storage import LocalObjectStorage
from studyhub.web.api import create_app
from studyhub.web.deps import AppServices


class FakeIdentityProvider:
    """In-memory identity provider with the same errors as the real one."""

    def __init__(self):
        self.accounts: dict[str, dict[str, Any]] = {}  # email -> account
        self.tokens: dict[str, str] = {}  # id_token -> email
        self.verification_emails: list[str] = []
        self.password_resets: list[str] = []
        self.revoked: list[str] = []
        self._next = 0

    def _issue(self, email: str, is_new_user: bool = False) -> IdentityUser:
        account = self.accounts[email]
        self._next += 1
        token = f"token-{self._next}"
        self.tokens[token] = email
        return IdentityUser(
            uid=account["uid"],
            email=email,
            display_name=account.get("display_name"),
            email_verified=account.get("email_verified", False),
            id_token=token,
            refresh_token=f"refresh-{self._next}",
            expires_in=3600,
            is_new_user=is_new_user,
        )

    def add_account(self, email: str, password: str = "secret123", **extra) -> str:
        uid = f"uid-{len(self.accounts) + 1}"
        self.accounts[email] = {"uid": uid, "password": password, **extra}
        return uid

    def sign_up(self, email: str, password: str) -> IdentityUser:
        if email in self.accounts:
            raise AuthError("auth/email-already-in-use")
        self.add_account(email, password)
        return self._issue(email, is_new_user=True)

    def update_display_name(self, id_token: str, display_name: str) -> None:
        self.accounts[self.tokens[id_token]]["display_name"] = display_name

    def sign_in(self, email: str, password: str) -> IdentityUser:
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            raise AuthError("auth/invalid-credential")
        return self._issue(email)

    def sign_in_with_idp(self, provider, id_token=None, access_token=None) -> IdentityUser:
        credential = id_token or access_token
        if not credential or not credential.startswith(f"{provider}:"):
            raise AuthError("auth/invalid-idp-response")
        email = credential.split(":", 1)[1]
        is_new = email not in self.accounts
        if is_new:
            self.add_account(email, password="", email_verified=True)
        return self._issue(email, is_new_user=is_new)

    def send_password_reset(self, email: str) -> None:
        self.password_resets.append(email)

    def send_verification_email(self, id_token: str) -> None:
        self.verification_emails.append(self.tokens[id_token])

    def lookup(self, id_token: str) -> IdentityUser:
        if id_token not in self.tokens:
            raise AuthError("auth/invalid-id-token")
        user = self._issue(self.tokens[id_token])
        user.id_token = id_token
        return user

    def revoke_sessions(self, uid: str) -> None:
        self.revoked.append(uid)


@pytest.fixture(autouse=True)
def _clear_caches():
    """Keep config and prompt caches from leaking between tests."""
    clear_config_cache()
    clear_prompt_cache()
    yield
    clear_config_cache()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def store(tmp_path) -> SqliteDocumentStore:
    """SQLite document store in a temp directory."""
    return SqliteDocumentStore(tmp_path / "db" / "test.db")


@pytest.fixture
def storage(tmp_path) -> LocalObjectStorage:
    return LocalObjectStorage(tmp_path / "storage")


@pytest.fixture
def auth_service(identity, store) -> AuthService:
    return AuthService(identity, store)


@pytest.fixture
def mock_llm_client():
    """Mock LLM client that returns fixed responses without calling a model."""
    client = MagicMock()
    client.config = MagicMock()
    client.config.provider = "gemini"
    client.config.model = "test-model"
    client.supports_media.return_value = True
    client.is_available.return_value = True
    client.simple_json.return_value = {"summary": "A short summary."}
    return client


@pytest.fixture
def services(store, storage, auth_service, mock_llm_client) -> AppServices:
    return AppServices(
        config=AppConfig(),
        store=store,
        storage=storage,
        auth=auth_service,
        llm_client=mock_llm_client,
    )


@pytest.fixture
def api_client(services) -> TestClient:
    """Test client over an app wired to the fakes."""
    return TestClient(create_app(services))


@pytest.fixture
def signed_up(api_client, identity) -> dict[str, Any]:
    """A student account created through the API. Returns the session JSON."""
    response = api_client.post(
        "/api/auth/signup",
        json={
            "first_name": "Ana",
            "last_name": "García",
            "email": "ana@example.com",
            "password": "secret123",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def auth_headers(signed_up) -> dict[str, str]:
    return {"Authorization": f"Bearer {signed_up['id_token']}"}
