"""Endpoints for the authenticated wallet user."""

from fastapi import APIRouter

from wallet_auth.api.v1.dependencies import CurrentUserDep
from wallet_auth.schemas.user import UserProfile

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfile, summary="Return the session's user")
def read_me(current_user: CurrentUserDep) -> UserProfile:
    return UserProfile.model_validate(current_user)
