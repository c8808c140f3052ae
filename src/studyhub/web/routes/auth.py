"""Authentication endpoints."""

from fastapi import APIRouter, Depends, status

from studyhub.auth.service import AuthSession
from studyhub.web.deps import AppServices, get_current_user, get_services
from studyhub.web.schemas import (
    OAuthRequest,
    PasswordResetRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    StatusResponse,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _to_response(session: AuthSession) -> SessionResponse:
    return SessionResponse(
        uid=session.uid,
        email=session.email,
        id_token=session.id_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        is_new_user=session.is_new_user,
        profile=session.profile,
    )


@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def sign_up(
    request: SignUpRequest, services: AppServices = Depends(get_services)
) -> SessionResponse:
    """Create an account and send the verification email."""
    session = services.auth.sign_up(
        email=request.email,
        password=request.password,
        first_name=request.first_name,
        last_name=request.last_name,
    )
    return _to_response(session)


@router.post("/signin", response_model=SessionResponse)
def sign_in(
    request: SignInRequest, services: AppServices = Depends(get_services)
) -> SessionResponse:
    return _to_response(services.auth.sign_in(request.email, request.password))


@router.post("/oauth/{provider}", response_model=SessionResponse)
def sign_in_with_oauth(
    provider: str,
    request: OAuthRequest,
    services: AppServices = Depends(get_services),
) -> SessionResponse:
    """Exchange a Google or Microsoft credential for a session."""
    session = services.auth.sign_in_with_oauth(
        provider, id_token=request.id_token, access_token=request.access_token
    )
    return _to_response(session)


@router.post("/password-reset", response_model=StatusResponse, status_code=status.HTTP_202_ACCEPTED)
def password_reset(
    request: PasswordResetRequest, services: AppServices = Depends(get_services)
) -> StatusResponse:
    services.auth.send_password_reset(request.email)
    return StatusResponse(message="Password reset email sent.")


@router.post("/verify-email", response_model=StatusResponse, status_code=status.HTTP_202_ACCEPTED)
def resend_verification(
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> StatusResponse:
    services.auth.send_verification_email(user.id_token or "")
    return StatusResponse(message="Verification email sent.")


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> None:
    """Revoke the user's refresh tokens."""
    services.auth.sign_out(user.uid)


@router.get("/me", response_model=SessionResponse)
def me(user: AuthSession = Depends(get_current_user)) -> SessionResponse:
    """Current user with profile (created on first lookup if missing)."""
    return _to_response(user)
