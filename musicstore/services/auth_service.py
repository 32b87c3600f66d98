import logging
import re
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from musicstore.core.exceptions import AuthenticationError, FieldViolation, ValidationError
from musicstore.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from musicstore.models.user import User, UserRole

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")
MIN_PASSWORD_LENGTH = 8
SELF_SERVICE_ROLES = (UserRole.ARTIST, UserRole.CUSTOMER)


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    role: UserRole,
    display_name: str | None = None,
) -> User:
    violations: list[FieldViolation] = []
    if not USERNAME_PATTERN.match(username or ""):
        violations.append(
            FieldViolation("username", "Username must be 3-50 letters, digits, '.', '_' or '-'")
        )
    if len(password or "") < MIN_PASSWORD_LENGTH:
        violations.append(
            FieldViolation("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        )
    if role not in SELF_SERVICE_ROLES:
        violations.append(FieldViolation("role", "Role must be artist or customer"))
    if violations:
        raise ValidationError(violations=violations)

    existing = await db.execute(
        select(User).where(
            or_(func.lower(User.username) == username.lower(), func.lower(User.email) == email.lower())
        )
    )
    if existing.scalars().first():
        raise ValidationError("Username or email is already registered")

    user = User(
        username=username,
        email=email.lower(),
        hashed_password=hash_password(password),
        role=role,
        display_name=display_name,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    logger.info("Registered %s account %s", role.value, username)
    return user


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(func.lower(User.username) == username.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid username or password")

    if not user.is_active:
        raise AuthenticationError("Account is disabled")

    return user


def create_tokens(user: User) -> dict:
    access_token = create_access_token(
        subject=str(user.id),
        extra_claims={"role": user.role.value, "username": user.username},
    )
    refresh_token = create_refresh_token(subject=str(user.id))
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
    }


async def refresh_access_token(db: AsyncSession, refresh_token: str) -> dict:
    try:
        payload = decode_token(refresh_token)
    except ValueError:
        raise AuthenticationError("Invalid refresh token")

    if payload.get("type") != "refresh":
        raise AuthenticationError("Invalid token type")

    try:
        user_id = uuid.UUID(payload.get("sub"))
    except (ValueError, TypeError):
        raise AuthenticationError("Invalid refresh token")
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    return create_tokens(user)
