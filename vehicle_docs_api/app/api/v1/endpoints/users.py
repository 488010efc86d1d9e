"""
Account and profile endpoints for API v1.

``/signup`` creates an account with the identity provider (confirmed
immediately, since no mail server is involved) and ``/signin``
exchanges credentials for a bearer token.  ``/profile`` reads and
updates the merged profile of the caller.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from vehicle_docs_api.app.core.exceptions import IdentityError
from vehicle_docs_api.app.core.security import AuthenticatedUser, get_current_user
from vehicle_docs_api.app.schemas.user import (
    ProfileEnvelope,
    ProfileUpdate,
    ProfileUpdateResult,
    SignInRequest,
    SignUpRequest,
)
from vehicle_docs_api.app.services.profile_service import ProfileRepository
from vehicle_docs_api.app.services.user_service import UserService

router = APIRouter()


@router.post("/signup")
async def sign_up(payload: SignUpRequest) -> dict:
    """Create an account.

    Provider errors (duplicate email, weak password …) are returned as
    400 with the provider's message.
    """
    try:
        user = await UserService.sign_up(payload)
    except IdentityError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return {"user": user}


@router.post("/signin")
async def sign_in(payload: SignInRequest) -> dict:
    """Return ``{"access_token", "token_type", "user"}`` for valid credentials."""
    return await UserService.sign_in(payload)


@router.get("/profile", response_model=ProfileEnvelope, response_model_exclude_none=True)
async def get_profile(current_user: AuthenticatedUser = Depends(get_current_user)) -> dict:
    return {"user": await ProfileRepository.get_profile(current_user)}


@router.put("/profile", response_model=ProfileUpdateResult)
async def update_profile(
    payload: ProfileUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    """Update profile fields; omitted fields keep their values."""
    changes = await ProfileRepository.update_profile(current_user, payload)
    return {"success": True, "profile": changes}
