"""Tests for AuthService against the in-memory identity provider."""

import pytest

from studyhub.auth.errors import AuthError
from studyhub.db.profiles_repository import USERS, get_user_profile


def _profiles(store) -> list[dict]:
    return store.query(USERS, "role", "student")


class TestSignUp:
    def test_creates_one_student_profile_and_one_verification_email(
        self, auth_service, identity, store
    ):
        session = auth_service.sign_up("ana@example.com", "secret123", "Ana", "García")

        profiles = _profiles(store)
        assert len(profiles) == 1
        assert profiles[0]["id"] == session.uid
        assert profiles[0]["role"] == "student"
        assert profiles[0]["displayName"] == "Ana García"
        assert profiles[0]["firstName"] == "Ana"
        assert identity.verification_emails == ["ana@example.com"]
        assert identity.accounts["ana@example.com"]["display_name"] == "Ana García"
        assert session.id_token
        assert session.role == "student"

    def test_duplicate_email_fails_and_creates_no_profile(self, auth_service, identity, store):
        identity.add_account("ana@example.com")

        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_up("ana@example.com", "secret123", "Ana", "García")

        assert exc_info.value.code == "auth/email-already-in-use"
        assert exc_info.value.severity == "error"
        assert _profiles(store) == []
        assert identity.verification_emails == []

    def test_invalid_email(self, auth_service, store):
        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_up("not-an-email", "secret123", "Ana", "García")

        assert exc_info.value.code == "auth/invalid-email"
        assert _profiles(store) == []

    def test_weak_password(self, auth_service):
        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_up("ana@example.com", "123", "Ana", "García")

        assert exc_info.value.code == "auth/weak-password"


class TestSignIn:
    def test_sign_in_returns_profile(self, auth_service):
        auth_service.sign_up("ana@example.com", "secret123", "Ana", "García")

        session = auth_service.sign_in("ana@example.com", "secret123")

        assert session.profile["email"] == "ana@example.com"
        assert session.refresh_token

    def test_wrong_password_is_warning(self, auth_service):
        auth_service.sign_up("ana@example.com", "secret123", "Ana", "García")

        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_in("ana@example.com", "wrong-password")

        assert exc_info.value.code == "auth/invalid-credential"
        assert exc_info.value.severity == "warning"

    def test_sign_in_does_not_overwrite_role(self, auth_service, store):
        session = auth_service.sign_up("ana@example.com", "secret123", "Ana", "García")
        store.update(USERS, session.uid, {"role": "teacher"})

        again = auth_service.sign_in("ana@example.com", "secret123")

        assert again.role == "teacher"

    def test_missing_password(self, auth_service):
        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_in("ana@example.com", "")

        assert exc_info.value.code == "auth/missing-password"


class TestOAuth:
    def test_first_google_login_creates_profile(self, auth_service, store):
        session = auth_service.sign_in_with_oauth("google", id_token="google:g@example.com")

        profile = get_user_profile(store, session.uid)
        assert profile["role"] == "student"
        assert session.is_new_user is True

    def test_second_login_reuses_profile(self, auth_service, store):
        first = auth_service.sign_in_with_oauth("microsoft", access_token="microsoft:m@example.com")
        store.update(USERS, first.uid, {"role": "admin"})

        second = auth_service.sign_in_with_oauth("microsoft", access_token="microsoft:m@example.com")

        assert second.uid == first.uid
        assert second.role == "admin"

    def test_unsupported_provider(self, auth_service):
        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_in_with_oauth("github", id_token="x")

        assert exc_info.value.code == "auth/unsupported-provider"


class TestSessions:
    def test_resolve_session_backfills_missing_profile(self, auth_service, identity, store):
        uid = identity.add_account("legacy@example.com")
        token = auth_service.identity.sign_in("legacy@example.com", "secret123").id_token

        session = auth_service.resolve_session(token)

        assert session.uid == uid
        assert get_user_profile(store, uid)["role"] == "student"

    def test_resolve_session_invalid_token(self, auth_service):
        with pytest.raises(AuthError) as exc_info:
            auth_service.resolve_session("forged")

        assert exc_info.value.code == "auth/invalid-id-token"

    def test_password_reset(self, auth_service, identity):
        auth_service.send_password_reset("ana@example.com")

        assert identity.password_resets == ["ana@example.com"]

    def test_sign_out_revokes(self, auth_service, identity):
        session = auth_service.sign_up("ana@example.com", "secret123", "Ana", "García")

        auth_service.sign_out(session.uid)

        assert identity.revoked == [session.uid]
