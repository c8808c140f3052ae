"""Repository functions for user profiles (collection ``users``).

Profiles are keyed by uid. The role is assigned once, when the profile
is first created, and defaults to ``student``.
"""

from __future__ import annotations

from typing import Any, Literal

import structlog

from studyhub.db.documents import SERVER_TIMESTAMP, DocumentStore

logger = structlog.get_logger(__name__)

USERS = "users"

Role = Literal["student", "teacher", "admin"]
ROLES: tuple[str, ...] = ("student", "teacher", "admin")
DEFAULT_ROLE: Role = "student"

# Fields a user may edit through the profile form
EDITABLE_FIELDS = ("firstName", "lastName", "displayName", "photoURL", "preferences")


def get_user_profile(store: DocumentStore, uid: str) -> dict[str, Any] | None:
    """Get a profile by uid, or None."""
    return store.get(USERS, uid)


def create_user_profile(
    store: DocumentStore,
    uid: str,
    email: str | None,
    display_name: str | None = None,
    photo_url: str | None = None,
    email_verified: bool = False,
    first_name: str | None = None,
    last_name: str | None = None,
) -> dict[str, Any]:
    """Write a new profile document with the default role."""
    data: dict[str, Any] = {
        "uid": uid,
        "email": email,
        "displayName": display_name,
        "photoURL": photo_url,
        "role": DEFAULT_ROLE,
        "createdAt": SERVER_TIMESTAMP,
        "emailVerified": email_verified,
    }
    if first_name is not None:
        data["firstName"] = first_name
    if last_name is not None:
        data["lastName"] = last_name

    store.set(USERS, uid, data)
    logger.info("profile.created", uid=uid, role=DEFAULT_ROLE)
    return store.get(USERS, uid) or data


def ensure_user_profile(
    store: DocumentStore,
    uid: str,
    email: str | None,
    display_name: str | None = None,
    photo_url: str | None = None,
    email_verified: bool = False,
) -> tuple[dict[str, Any], bool]:
    """Get the profile, creating a default one on first authentication.

    Returns:
        (profile, created)
    """
    profile = get_user_profile(store, uid)
    if profile is not None:
        return profile, False

    profile = create_user_profile(
        store,
        uid=uid,
        email=email,
        display_name=display_name,
        photo_url=photo_url,
        email_verified=email_verified,
    )
    return profile, True


def update_user_profile(
    store: DocumentStore, uid: str, updates: dict[str, Any]
) -> dict[str, Any]:
    """Apply profile-form edits. ``uid``, ``email`` and ``role`` are not editable.

    Raises:
        DocumentNotFoundError: If the profile does not exist
    """
    data = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
    data["updatedAt"] = SERVER_TIMESTAMP
    store.update(USERS, uid, data)
    logger.info("profile.updated", uid=uid, fields=sorted(k for k in data if k != "updatedAt"))
    return store.get(USERS, uid) or {}


def add_device_token(store: DocumentStore, uid: str, token: str) -> list[str]:
    """Add a push registration token to the profile (idempotent)."""
    profile = get_user_profile(store, uid) or {}
    tokens = list(profile.get("fcmTokens") or [])
    if token not in tokens:
        tokens.append(token)
        store.update(USERS, uid, {"fcmTokens": tokens, "updatedAt": SERVER_TIMESTAMP})
        logger.info("profile.device_token_added", uid=uid, tokens=len(tokens))
    return tokens


def remove_device_tokens(store: DocumentStore, uid: str, stale: list[str]) -> None:
    """Drop registration tokens the messaging service rejected."""
    profile = get_user_profile(store, uid) or {}
    tokens = [t for t in profile.get("fcmTokens") or [] if t not in stale]
    store.update(USERS, uid, {"fcmTokens": tokens})
    logger.info("profile.device_tokens_pruned", uid=uid, removed=len(stale))
