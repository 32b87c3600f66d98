from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from musicstore.config import settings
from musicstore.core.dependencies import get_current_user
from musicstore.core.rate_limit import limiter
from musicstore.db.session import get_db
from musicstore.models.user import User
from musicstore.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest, TokenResponse, UserResponse
from musicstore.schemas.common import ApiResponse, ok
from musicstore.services.auth_service import authenticate_user, create_tokens, refresh_access_token, register_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    user = await register_user(
        db,
        username=body.username,
        email=body.email,
        password=body.password,
        role=body.role,
        display_name=body.display_name,
    )
    return ok("Account created", UserResponse.model_validate(user))


@router.post("/login", response_model=ApiResponse[TokenResponse])
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(request: Request, body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, body.username, body.password)
    return ok("Login successful", create_tokens(user))


@router.post("/refresh", response_model=ApiResponse[TokenResponse])
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    return ok("Token refreshed", await refresh_access_token(db, body.refresh_token))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(current_user: User = Depends(get_current_user)):
    return ok("Current user", UserResponse.model_validate(current_user))
