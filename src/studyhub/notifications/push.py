"""Web push notifications through Firebase Cloud Messaging.

Device tokens are kept on the user profile (``fcmTokens``). A send goes
to every registered token of the target user as a web-push multicast.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from firebase_admin import exceptions, messaging

from studyhub.db.documents import DocumentStore
from studyhub.db.profiles_repository import (
    add_device_token,
    get_user_profile,
    remove_device_tokens,
)

logger = structlog.get_logger(__name__)

DEFAULT_TITLE = "New Notification"
DEFAULT_BODY = "You have a new message."
DEFAULT_ICON = "/icons/icon-192x192.png"

SENDER_ROLES = frozenset({"teacher", "admin"})


class NotificationError(Exception):
    """Base error for push notifications."""


class RecipientNotFoundError(NotificationError):
    def __init__(self, uid: str):
        self.uid = uid
        super().__init__(f"User not found: {uid}")


class DeliveryError(NotificationError):
    """Messaging service refused or failed the send."""


@dataclass
class SendResult:
    success_count: int
    failure_count: int

    def to_dict(self) -> dict[str, int]:
        return {"successCount": self.success_count, "failureCount": self.failure_count}


def can_send(role: str | None, sender_uid: str, recipient_uid: str) -> bool:
    """Anyone may notify themselves; only teachers and admins may notify others."""
    return sender_uid == recipient_uid or role in SENDER_ROLES


def register_device_token(store: DocumentStore, uid: str, token: str) -> list[str]:
    if not token or not token.strip():
        raise NotificationError("Device token is empty")
    return add_device_token(store, uid, token.strip())


def build_message(
    tokens: list[str],
    title: str | None = None,
    body: str | None = None,
    link: str | None = None,
    icon: str | None = None,
    data: dict[str, str] | None = None,
) -> messaging.MulticastMessage:
    """Build the web-push multicast with notification defaults applied."""
    title = title or DEFAULT_TITLE
    body = body or DEFAULT_BODY

    return messaging.MulticastMessage(
        tokens=tokens,
        notification=messaging.Notification(title=title, body=body),
        data={k: str(v) for k, v in (data or {}).items()},
        webpush=messaging.WebpushConfig(
            notification=messaging.WebpushNotification(
                title=title, body=body, icon=icon or DEFAULT_ICON
            ),
            fcm_options=messaging.WebpushFCMOptions(link=link) if link else None,
        ),
    )


def send_notification(
    store: DocumentStore,
    uid: str,
    title: str | None = None,
    body: str | None = None,
    link: str | None = None,
    icon: str | None = None,
    data: dict[str, str] | None = None,
    app: Any = None,
) -> SendResult:
    """Push a notification to every registered device of ``uid``.

    Tokens the service reports as unregistered are removed from the profile.

    Raises:
        RecipientNotFoundError: If the user has no profile
        DeliveryError: If the messaging service rejects the request
    """
    profile = get_user_profile(store, uid)
    if profile is None:
        raise RecipientNotFoundError(uid)

    tokens = list(profile.get("fcmTokens") or [])
    if not tokens:
        logger.info("notification.no_devices", uid=uid)
        return SendResult(success_count=0, failure_count=0)

    message = build_message(tokens, title=title, body=body, link=link, icon=icon, data=data)
    try:
        response = messaging.send_each_for_multicast(message, app=app)
    except (exceptions.FirebaseError, ValueError) as e:
        logger.error("notification.send_failed", uid=uid, devices=len(tokens), error=str(e))
        raise DeliveryError(f"Could not send notification: {e}") from e

    stale = [
        token
        for token, result in zip(tokens, response.responses)
        if not result.success and isinstance(result.exception, messaging.UnregisteredError)
    ]
    if stale:
        remove_device_tokens(store, uid, stale)

    if response.failure_count:
        logger.warning(
            "notification.partial_failure",
            uid=uid,
            success=response.success_count,
            failed=response.failure_count,
        )
    else:
        logger.info("notification.sent", uid=uid, devices=response.success_count)

    return SendResult(
        success_count=response.success_count, failure_count=response.failure_count
    )
