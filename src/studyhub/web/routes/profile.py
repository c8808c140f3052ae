"""Profile endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from studyhub.auth.service import AuthSession
from studyhub.db.profiles_repository import update_user_profile
from studyhub.web.deps import AppServices, get_current_user, get_services
from studyhub.web.schemas import ProfileUpdate

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=dict[str, Any])
def get_profile(user: AuthSession = Depends(get_current_user)) -> dict[str, Any]:
    return user.profile


@router.patch("", response_model=dict[str, Any])
def update_profile(
    update: ProfileUpdate,
    user: AuthSession = Depends(get_current_user),
    services: AppServices = Depends(get_services),
) -> dict[str, Any]:
    """Save profile-form edits. Role and email cannot be changed here."""
    return update_user_profile(services.store, user.uid, update.to_document())
