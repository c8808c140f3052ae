"""Authentication service.

Coordinates the identity provider with the profile documents: every
first authentication (sign-up, first OAuth sign-in, first session
lookup) leaves exactly one profile with the default role.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from studyhub.auth.errors import AuthError
from studyhub.auth.identity import OAUTH_PROVIDER_IDS, IdentityProvider, IdentityUser
from studyhub.db.documents import DocumentStore
from studyhub.db.profiles_repository import create_user_profile, ensure_user_profile
from studyhub.utils.validators import validate_email, validate_password

logger = structlog.get_logger(__name__)


@dataclass
class AuthSession:
    """Tokens plus the merged user/profile view."""

    uid: str
    email: str | None
    id_token: str | None
    refresh_token: str | None
    expires_in: int | None = None
    profile: dict[str, Any] = field(default_factory=dict)
    is_new_user: bool = False

    @property
    def role(self) -> str:
        return self.profile.get("role", "student")

    def to_dict(self) -> dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "idToken": self.id_token,
            "refreshToken": self.refresh_token,
            "expiresIn": self.expires_in,
            "isNewUser": self.is_new_user,
            "profile": self.profile,
        }


def _session(user: IdentityUser, profile: dict[str, Any]) -> AuthSession:
    return AuthSession(
        uid=user.uid,
        email=user.email,
        id_token=user.id_token,
        refresh_token=user.refresh_token,
        expires_in=user.expires_in,
        profile=profile,
        is_new_user=user.is_new_user,
    )


def _check_credentials(email: str, password: str) -> None:
    if not validate_email(email):
        raise AuthError("auth/invalid-email")
    if not password:
        raise AuthError("auth/missing-password")


class AuthService:
    def __init__(self, identity: IdentityProvider, store: DocumentStore):
        self.identity = identity
        self.store = store

    def sign_up(
        self, email: str, password: str, first_name: str, last_name: str
    ) -> AuthSession:
        """Create an account, its profile, and send the verification email.

        Provider rejections (duplicate email, weak password) propagate as
        AuthError before any profile is written.
        """
        _check_credentials(email, password)
        if not validate_password(password):
            raise AuthError("auth/weak-password")

        user = self.identity.sign_up(email.strip(), password)

        display_name = f"{first_name} {last_name}".strip()
        if display_name and user.id_token:
            self.identity.update_display_name(user.id_token, display_name)
            user.display_name = display_name

        profile = create_user_profile(
            self.store,
            uid=user.uid,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            email_verified=user.email_verified,
            first_name=first_name,
            last_name=last_name,
        )

        if user.id_token:
            self.identity.send_verification_email(user.id_token)

        logger.info("auth.signed_up", uid=user.uid)
        return _session(user, profile)

    def sign_in(self, email: str, password: str) -> AuthSession:
        _check_credentials(email, password)
        user = self.identity.sign_in(email.strip(), password)

        profile, _created = ensure_user_profile(
            self.store,
            uid=user.uid,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            email_verified=user.email_verified,
        )
        logger.info("auth.signed_in", uid=user.uid, method="password")
        return _session(user, profile)

    def sign_in_with_oauth(
        self,
        provider: str,
        id_token: str | None = None,
        access_token: str | None = None,
    ) -> AuthSession:
        """Exchange a Google or Microsoft credential for a session.

        Args:
            provider: "google" or "microsoft"
            id_token: Provider ID token (Google)
            access_token: Provider access token (Google or Microsoft)
        """
        if provider not in OAUTH_PROVIDER_IDS:
            raise AuthError("auth/unsupported-provider")

        user = self.identity.sign_in_with_idp(
            provider, id_token=id_token, access_token=access_token
        )
        profile, created = ensure_user_profile(
            self.store,
            uid=user.uid,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            email_verified=user.email_verified,
        )
        logger.info("auth.signed_in", uid=user.uid, method=provider, new_profile=created)
        return _session(user, profile)

    def send_password_reset(self, email: str) -> None:
        if not validate_email(email):
            raise AuthError("auth/invalid-email")
        self.identity.send_password_reset(email.strip())
        logger.info("auth.password_reset_sent")

    def send_verification_email(self, id_token: str) -> None:
        self.identity.send_verification_email(id_token)
        logger.info("auth.verification_sent")

    def resolve_session(self, id_token: str) -> AuthSession:
        """Look up the signed-in user and return user+profile.

        A missing profile document is created with the default role.
        """
        if not id_token:
            raise AuthError("auth/invalid-id-token")

        user = self.identity.lookup(id_token)
        profile, created = ensure_user_profile(
            self.store,
            uid=user.uid,
            email=user.email,
            display_name=user.display_name,
            photo_url=user.photo_url,
            email_verified=user.email_verified,
        )
        if created:
            logger.info("auth.profile_backfilled", uid=user.uid)
        return _session(user, profile)

    def sign_out(self, uid: str) -> None:
        self.identity.revoke_sessions(uid)
        logger.info("auth.signed_out", uid=uid)
