"""Authentication service for user management, JWT sessions and password resets."""

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

import bcrypt
from jose import jwt
from jose.exceptions import JWTClaimsError
from sqlmodel import Session, select

from taskio.config import get_settings
from taskio.models.user import ProfileUpdate, User, UserSignup
from taskio.services.throttle import LoginThrottle

logger = logging.getLogger(__name__)

settings = get_settings()

# Password policy: at least 8 chars, one lowercase, one uppercase, one special character
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*[\W_]).{8,}$")

PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters long and include an uppercase letter, "
    "a lowercase letter and a special character"
)


class DuplicateEmailError(Exception):
    """Raised when an email is already registered to another user."""
    pass


class InvalidCredentialsError(Exception):
    """Raised when an email/password pair does not match."""
    pass


class AccountLockedError(Exception):
    """Raised when too many failed logins locked the identity."""
    pass


@dataclass(frozen=True)
class SessionIdentity:
    """Identity carried by a verified session token."""

    user_id: UUID
    email: str
    expires_at: datetime


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    password_bytes = plain_password.encode('utf-8')
    hashed_bytes = hashed_password.encode('utf-8')
    return bcrypt.checkpw(password_bytes, hashed_bytes)


def normalize_email(email: str) -> str:
    """Canonical form used for storage, lookups and throttle keys."""
    return email.strip().lower()


def validate_password_policy(password: str) -> tuple[bool, str]:
    """
    Validate password meets policy requirements.
    Returns (is_valid, error_message).
    """
    if not PASSWORD_PATTERN.match(password):
        return False, PASSWORD_POLICY_MESSAGE
    return True, ""


def create_session_token(
    user_id: UUID, email: str, now: datetime | None = None
) -> tuple[str, datetime]:
    """
    Generate a signed session token for the user.
    Returns (token, expires_at).
    """
    issued_at = now or datetime.utcnow()
    expires_at = issued_at + timedelta(hours=settings.JWT_EXPIRATION_HOURS)
    payload = {
        "sub": str(user_id),
        "email": email,
        "exp": expires_at,
        "iat": issued_at,
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_at


def decode_session_token(token: str) -> SessionIdentity:
    """
    Verify signature and expiry of a session token.

    Raises:
        jose.ExpiredSignatureError: If the token has expired
        jose.JWTError: If the token is malformed, tampered or lacks claims
    """
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    user_id = payload.get("sub")
    email = payload.get("email")
    if user_id is None or email is None:
        raise JWTClaimsError("Token is missing identity claims")
    try:
        parsed_id = UUID(user_id)
    except ValueError as e:
        raise JWTClaimsError("Token subject is not a valid id") from e
    return SessionIdentity(
        user_id=parsed_id,
        email=email,
        expires_at=datetime.utcfromtimestamp(payload["exp"]),
    )


def get_user_by_email(session: Session, email: str) -> User | None:
    """Get a user by email address."""
    return session.exec(select(User).where(User.email == normalize_email(email))).first()


def get_user_by_id(session: Session, user_id: UUID) -> User | None:
    """Get a user by id."""
    return session.get(User, user_id)


def create_user(session: Session, user_data: UserSignup) -> User:
    """
    Create a new user.
    Assumes the password policy is already validated. The password is hashed
    here and nowhere else.

    Raises:
        DuplicateEmailError: If the email is already registered
    """
    if get_user_by_email(session, user_data.email) is not None:
        raise DuplicateEmailError("This email is already registered")

    user = User(
        email=normalize_email(user_data.email),
        hashed_password=hash_password(user_data.password),
        first_name=user_data.first_name.strip(),
        last_name=user_data.last_name.strip(),
        age=user_data.age,
    )
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info("User registered", extra={"user_id": str(user.id)})
    return user


def authenticate_user(
    session: Session, throttle: LoginThrottle, email: str, password: str
) -> User:
    """
    Authenticate a user by email and password.

    The lockout is checked before any credential comparison so retries
    cannot bypass it.

    Raises:
        AccountLockedError: If the email is currently locked out
        InvalidCredentialsError: If the email is unknown or the password is wrong
    """
    email = normalize_email(email)
    if throttle.is_locked(email):
        logger.info("Login rejected while locked", extra={"email": email})
        raise AccountLockedError("Too many failed attempts. Try again later.")

    user = get_user_by_email(session, email)
    if user is None:
        raise InvalidCredentialsError("Invalid credentials")

    if not verify_password(password, user.hashed_password):
        entry = throttle.record_failure(email)
        logger.info(
            "Login failed",
            extra={"user_id": str(user.id), "failure_count": entry.failure_count},
        )
        raise InvalidCredentialsError("Invalid credentials")

    throttle.record_success(email)
    logger.info("Login succeeded", extra={"user_id": str(user.id)})
    return user


def update_profile(session: Session, user: User, profile: ProfileUpdate) -> User:
    """
    Replace the user's profile fields.

    Raises:
        DuplicateEmailError: If the new email belongs to another user
    """
    email = normalize_email(profile.email)
    if email != user.email:
        other = get_user_by_email(session, email)
        if other is not None and other.id != user.id:
            raise DuplicateEmailError("This email is already registered")

    user.first_name = profile.first_name.strip()
    user.last_name = profile.last_name.strip()
    user.age = profile.age
    user.email = email
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def delete_user(session: Session, user: User) -> None:
    """Delete a user and, by cascade, their tasks."""
    user_id = user.id
    session.delete(user)
    session.commit()
    logger.info("User deleted", extra={"user_id": str(user_id)})


def create_reset_token(session: Session, user: User) -> str:
    """Store a fresh single-use reset token on the user and return it."""
    token = secrets.token_hex(32)
    user.reset_password_token = token
    user.reset_password_expires = datetime.utcnow() + timedelta(
        hours=settings.RESET_TOKEN_EXPIRATION_HOURS
    )
    session.add(user)
    session.commit()
    logger.info("Password reset requested", extra={"user_id": str(user.id)})
    return token


def get_user_by_reset_token(session: Session, token: str) -> User | None:
    """Return the user owning a reset token that has not expired yet."""
    return session.exec(
        select(User).where(
            User.reset_password_token == token,
            User.reset_password_expires > datetime.utcnow(),
        )
    ).first()


def complete_password_reset(session: Session, user: User, new_password: str) -> None:
    """Set the new password and clear the reset token."""
    user.hashed_password = hash_password(new_password)
    user.reset_password_token = None
    user.reset_password_expires = None
    session.add(user)
    session.commit()
    logger.info("Password reset completed", extra={"user_id": str(user.id)})
