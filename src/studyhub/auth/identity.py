"""Identity provider client.

Thin wrapper over the Firebase Identity Toolkit REST API. Account
storage, password hashing and token issuance stay with the provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol
from urllib.parse import urlencode

import requests
import structlog
from firebase_admin import auth as admin_auth

from studyhub.auth.errors import AuthError

logger = structlog.get_logger(__name__)

OAuthProvider = Literal["google", "microsoft"]

OAUTH_PROVIDER_IDS: dict[str, str] = {
    "google": "google.com",
    "microsoft": "microsoft.com",
}

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
DEFAULT_TIMEOUT = 30


@dataclass
class IdentityUser:
    """An authenticated account as reported by the provider."""

    uid: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    email_verified: bool = False
    id_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    is_new_user: bool = False

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> IdentityUser:
        expires_in = data.get("expiresIn")
        return cls(
            uid=data.get("localId", ""),
            email=data.get("email"),
            display_name=data.get("displayName") or None,
            photo_url=data.get("photoUrl") or None,
            email_verified=bool(data.get("emailVerified", False)),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
            expires_in=int(expires_in) if expires_in else None,
            is_new_user=bool(data.get("isNewUser", False)),
        )


class IdentityProvider(Protocol):
    """Operations AuthService needs from the identity backend."""

    def sign_up(self, email: str, password: str) -> IdentityUser: ...

    def update_display_name(self, id_token: str, display_name: str) -> None: ...

    def sign_in(self, email: str, password: str) -> IdentityUser: ...

    def sign_in_with_idp(
        self, provider: OAuthProvider, id_token: str | None = None, access_token: str | None = None
    ) -> IdentityUser: ...

    def send_password_reset(self, email: str) -> None: ...

    def send_verification_email(self, id_token: str) -> None: ...

    def lookup(self, id_token: str) -> IdentityUser: ...

    def revoke_sessions(self, uid: str) -> None: ...


class FirebaseIdentityProvider:
    """Identity Toolkit REST client.

    Example:
        provider = FirebaseIdentityProvider(api_key=os.environ["FIREBASE_API_KEY"])
        user = provider.sign_in("ana@example.com", "secret123")
    """

    def __init__(
        self,
        api_key: str,
        emulator_host: str | None = None,
        app: Any = None,
        timeout: int = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.app = app
        self.timeout = timeout
        self.session = session or requests.Session()

        if emulator_host:
            self.base_url = f"http://{emulator_host}/identitytoolkit.googleapis.com/v1"
        else:
            self.base_url = IDENTITY_TOOLKIT_URL

    def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/accounts:{endpoint}"
        try:
            response = self.session.post(
                url, params={"key": self.api_key}, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error("identity.request_failed", endpoint=endpoint, error=str(e))
            raise AuthError("auth/network-request-failed") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            message = (data.get("error") or {}).get("message", "")
            error = AuthError.from_provider_message(message)
            log = logger.warning if error.severity == "warning" else logger.error
            log("identity.rejected", endpoint=endpoint, provider_message=message, code=error.code)
            raise error

        return data

    def sign_up(self, email: str, password: str) -> IdentityUser:
        data = self._post(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        user = IdentityUser.from_response(data)
        user.is_new_user = True
        return user

    def update_display_name(self, id_token: str, display_name: str) -> None:
        self._post(
            "update",
            {"idToken": id_token, "displayName": display_name, "returnSecureToken": False},
        )

    def sign_in(self, email: str, password: str) -> IdentityUser:
        data = self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return IdentityUser.from_response(data)

    def sign_in_with_idp(
        self, provider: OAuthProvider, id_token: str | None = None, access_token: str | None = None
    ) -> IdentityUser:
        provider_id = OAUTH_PROVIDER_IDS.get(provider)
        if provider_id is None:
            raise AuthError("auth/unsupported-provider")
        if not id_token and not access_token:
            raise AuthError("auth/invalid-idp-response", "Missing OAuth credential.")

        post_body: dict[str, str] = {"providerId": provider_id}
        if id_token:
            post_body["id_token"] = id_token
        if access_token:
            post_body["access_token"] = access_token

        data = self._post(
            "signInWithIdp",
            {
                "postBody": urlencode(post_body),
                "requestUri": "http://localhost",
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        return IdentityUser.from_response(data)

    def send_password_reset(self, email: str) -> None:
        self._post("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    def send_verification_email(self, id_token: str) -> None:
        self._post("sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": id_token})

    def lookup(self, id_token: str) -> IdentityUser:
        data = self._post("lookup", {"idToken": id_token})
        users = data.get("users") or []
        if not users:
            raise AuthError("auth/invalid-id-token")

        user = IdentityUser.from_response(users[0])
        user.id_token = id_token
        return user

    def revoke_sessions(self, uid: str) -> None:
        """Revoke all refresh tokens for ``uid``."""
        try:
            admin_auth.revoke_refresh_tokens(uid, app=self.app)
        except admin_auth.UserNotFoundError as e:
            raise AuthError("auth/invalid-id-token") from e
        logger.info("identity.sessions_revoked", uid=uid)
