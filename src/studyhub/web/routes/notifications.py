"""Push notification endpoints."""

from fastapi import APIRouter, Depends, status

from studyhub.auth.errors import AuthError
from studyhub.auth.service import AuthSession
from studyhub.notifications.push import can_send, register_device_token, send_notification
from studyhub.web.deps import AppServices, get_current_user, get_services
from studyhub.web.schemas import (
    DeviceTokenRequest,
    DeviceTokenResponse,
    SendNotificationRequest,
    SendNotificationResponse,
)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.post("/tokens", response_model=DeviceTokenResponse, status_code=status.HTTP_201_CREATED)
def register_token(
    request: DeviceTokenRequest,
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> DeviceTokenResponse:
    """Register this device for push notifications."""
    tokens = register_device_token(services.store, user.uid, request.token)
    return DeviceTokenResponse(token_count=len(tokens))


@router.post("/send", response_model=SendNotificationResponse)
def send(
    request: SendNotificationRequest,
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> SendNotificationResponse:
    """Send a push notification. Teachers and admins may target other users."""
    recipient = request.uid or user.uid
    if not can_send(user.role, user.uid, recipient):
        raise AuthError("auth/forbidden")

    result = send_notification(
        services.store,
        recipient,
        title=request.title,
        body=request.body,
        link=request.link,
        icon=request.icon,
        data=request.data,
        app=services.firebase_app,
    )
    return SendNotificationResponse(
        success_count=result.success_count, failure_count=result.failure_count
    )
