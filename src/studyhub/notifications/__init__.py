"""Push notifications."""

from studyhub.notifications.push import (
    NotificationError,
    RecipientNotFoundError,
    SendResult,
    can_send,
    register_device_token,
    send_notification,
)

__all__ = [
    "NotificationError",
    "RecipientNotFoundError",
    "SendResult",
    "can_send",
    "register_device_token",
    "send_notification",
]
