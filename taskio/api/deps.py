"""API dependencies for dependency injection."""

import logging
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyCookie
from jose import ExpiredSignatureError, JWTError
from sqlmodel import Session

from taskio.db.session import get_session
from taskio.models.user import User
from taskio.services.auth import SessionIdentity, decode_session_token, get_user_by_id
from taskio.services.throttle import LoginThrottle

logger = logging.getLogger(__name__)

SESSION_COOKIE = "token"

cookie_scheme = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)


def get_db_session() -> Generator[Session, None, None]:
    """Get database session dependency."""
    yield from get_session()


DBSession = Annotated[Session, Depends(get_db_session)]


def get_login_throttle(request: Request) -> LoginThrottle:
    """Return the process-wide login throttle created at startup."""
    return request.app.state.login_throttle


Throttle = Annotated[LoginThrottle, Depends(get_login_throttle)]


def authenticate_request(method: str, token: str | None) -> SessionIdentity | None:
    """
    Resolve the identity behind a request's session token.

    Pre-flight OPTIONS requests pass without a token and resolve to None.
    Expired and tampered tokens get the same 401; only the log tells them apart.

    Raises:
        HTTPException(401): If the token is missing, invalid or expired
    """
    if method.upper() == "OPTIONS":
        return None

    if not token:
        logger.info("Rejected request without session token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied, token missing",
        )

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
    )
    try:
        return decode_session_token(token)
    except ExpiredSignatureError:
        logger.info("Rejected expired session token")
        raise credentials_exception
    except JWTError:
        logger.warning("Rejected invalid session token")
        raise credentials_exception


def get_current_identity(
    request: Request,
    token: Annotated[str | None, Depends(cookie_scheme)],
) -> SessionIdentity | None:
    """Verify the session cookie and attach the identity to the request."""
    identity = authenticate_request(request.method, token)
    request.state.identity = identity
    return identity


CurrentIdentity = Annotated[SessionIdentity, Depends(get_current_identity)]


def get_current_user(session: DBSession, identity: CurrentIdentity) -> User:
    """Load the authenticated user's record."""
    user = get_user_by_id(session, identity.user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
