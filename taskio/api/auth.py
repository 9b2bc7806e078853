"""Authentication API endpoints."""

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from jose import JWTError

from taskio.api.deps import SESSION_COOKIE, CurrentIdentity, DBSession, Throttle
from taskio.config import get_settings
from taskio.models.user import (
    AuthResponse,
    ForgotPasswordRequest,
    MessageResponse,
    ResetPasswordRequest,
    UserLogin,
    UserSignup,
)
from taskio.services.auth import (
    AccountLockedError,
    DuplicateEmailError,
    InvalidCredentialsError,
    authenticate_user,
    complete_password_reset,
    create_reset_token,
    create_session_token,
    create_user,
    decode_session_token,
    get_user_by_email,
    get_user_by_reset_token,
    validate_password_policy,
)
from taskio.services.email import send_password_reset_email

router = APIRouter(prefix="/api", tags=["Auth"])

settings = get_settings()

SESSION_MAX_AGE_SECONDS = settings.JWT_EXPIRATION_HOURS * 60 * 60


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "strict" if settings.is_production else "lax",
    }


def set_session_cookie(response: Response, token: str) -> None:
    """Deliver the session token in an HTTP-only cookie."""
    response.set_cookie(SESSION_COOKIE, token, max_age=SESSION_MAX_AGE_SECONDS, **_cookie_options())


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, **_cookie_options())


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(session: DBSession, user_data: UserSignup) -> AuthResponse:
    """Register a new user account."""
    # Validate password policy before anything touches the store
    is_valid, error_msg = validate_password_policy(user_data.password)
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_msg,
        )

    try:
        user = create_user(session, user_data)
    except DuplicateEmailError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    return AuthResponse(message="User registered successfully", user_id=user.id)


@router.post("/login", response_model=AuthResponse)
def login(
    session: DBSession,
    throttle: Throttle,
    credentials: UserLogin,
    response: Response,
) -> AuthResponse:
    """Sign in with email and password and set the session cookie."""
    try:
        user = authenticate_user(session, throttle, credentials.email, credentials.password)
    except AccountLockedError as e:
        raise HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail=str(e),
        )
    except InvalidCredentialsError:
        # Generic error message to prevent enumeration
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    token, _ = create_session_token(user.id, user.email)
    set_session_cookie(response, token)
    return AuthResponse(message="Login successful", user_id=user.id)


@router.post("/logout", response_model=MessageResponse)
def logout(identity: CurrentIdentity, response: Response) -> MessageResponse:
    """Sign out by clearing the session cookie."""
    # Tokens are stateless; dropping the cookie ends the session client-side.
    clear_session_cookie(response)
    return MessageResponse(message="Logout successful")


@router.get("/session")
def session_status(request: Request) -> JSONResponse:
    """Report whether the request carries a valid session cookie."""
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"loggedIn": False})

    try:
        identity = decode_session_token(token)
    except JWTError:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"loggedIn": False})

    return JSONResponse(
        content={
            "loggedIn": True,
            "user": {
                "userId": str(identity.user_id),
                "email": identity.email,
                "exp": identity.expires_at.isoformat(),
            },
        }
    )


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(session: DBSession, payload: ForgotPasswordRequest) -> MessageResponse:
    """Email a password reset link to a registered user."""
    user = get_user_by_email(session, payload.email)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    token = create_reset_token(session, user)
    send_password_reset_email(user.email, token)
    return MessageResponse(message="Password reset email sent")


@router.post("/reset-password/{token}", response_model=MessageResponse)
def reset_password(session: DBSession, token: str, payload: ResetPasswordRequest) -> MessageResponse:
    """Set a new password using a reset token."""
    user = get_user_by_reset_token(session, token)
    if user is None:
        # Unknown and expired tokens are indistinguishable
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired token",
        )

    is_valid, error_msg = validate_password_policy(payload.password)
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_msg,
        )

    complete_password_reset(session, user, payload.password)
    return MessageResponse(message="Password updated successfully")
