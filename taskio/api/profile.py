"""Profile API endpoints for the authenticated user."""

from fastapi import APIRouter, HTTPException, Response, status

from taskio.api.auth import clear_session_cookie
from taskio.api.deps import CurrentUser, DBSession
from taskio.models.user import (
    MessageResponse,
    PasswordConfirmation,
    ProfileUpdate,
    ProfileUpdateResponse,
    UserResponse,
)
from taskio.services.auth import (
    DuplicateEmailError,
    delete_user,
    update_profile,
    verify_password,
)

router = APIRouter(prefix="/api/profile", tags=["Profile"])


@router.get("", response_model=UserResponse)
def get_profile(current_user: CurrentUser) -> UserResponse:
    """Get the authenticated user's profile."""
    return UserResponse.model_validate(current_user)


@router.put("", response_model=ProfileUpdateResponse)
def update_profile_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    profile: ProfileUpdate,
) -> ProfileUpdateResponse:
    """Update the authenticated user's profile."""
    try:
        user = update_profile(session, current_user, profile)
    except DuplicateEmailError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.delete("", response_model=MessageResponse)
def delete_profile(
    session: DBSession,
    current_user: CurrentUser,
    confirmation: PasswordConfirmation,
    response: Response,
) -> MessageResponse:
    """Delete the account after re-verifying the password, and end the session."""
    if not verify_password(confirmation.password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect password",
        )

    delete_user(session, current_user)
    clear_session_cookie(response)
    return MessageResponse(message="Profile deleted and session closed")
