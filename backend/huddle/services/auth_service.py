"""
Account service: registration, login and profile lookup.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from huddle.models.user import User
from huddle.schemas.user import UserCreate, UserLogin
from huddle.core.security import hash_password, verify_password, create_access_token
from huddle.core.logging import get_logger

logger = get_logger(__name__)


async def _ensure_unique(db: AsyncSession, column, value: str, reason: str, detail: str) -> None:
    result = await db.execute(select(User.id).where(column == value))
    if result.scalar_one_or_none() is not None:
        logger.warning("registration_failed", reason=reason)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new member with a hashed password.
    Raises 409 if the email or username is taken.
    """
    await _ensure_unique(db, User.email, user_data.email, "email_exists", "Email already registered")
    await _ensure_unique(db, User.username, user_data.username, "username_exists", "Username already taken")

    user = User(
        email=user_data.email,
        username=user_data.username,
        avatar=user_data.avatar,
        hashed_password=hash_password(user_data.password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> str:
    """
    Check credentials and return a JWT access token.
    Raises 401 on bad credentials, 403 for deactivated accounts.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    token = create_access_token(data={"sub": str(user.id)})
    logger.info("user_logged_in", user_id=user.id)
    return token


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
