"""
Authentication endpoints: register, login and current profile.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from huddle.db.session import get_db
from huddle.schemas.user import UserCreate, UserResponse, UserLogin, Token
from huddle.services.auth_service import register_user, authenticate_user, get_user
from huddle.core.security import get_current_user_id

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new member account."""
    return await register_user(db, user_data)


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a JWT access token."""
    token = await authenticate_user(db, login_data)
    return Token(access_token=token)


@router.get("/me", response_model=UserResponse)
async def me(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_user(db, user_id)
