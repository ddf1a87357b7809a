import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from roomrent.core.config import settings
from roomrent.core.database import get_db
from roomrent.core.deps import get_current_user
from roomrent.core.errors import ApiError, bad_request
from roomrent.core.redis import clear_login_failures, is_locked_out, record_login_failure
from roomrent.core.security import create_access_token, hash_password, verify_password
from roomrent.models.user import User
from roomrent.schemas.common import MessageResponse
from roomrent.schemas.user import TokenResponse, UserLogin, UserPasswordChange, UserResponse

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

router = APIRouter(prefix="/auth", tags=["auth"])

# httpOnly cookie settings: strict+secure in production, lax in dev for cross-port localhost
_SECURE = settings.environment != "development"
_SAMESITE = "strict" if settings.environment != "development" else "lax"


def _issue_token(response: Response, user: User) -> TokenResponse:
    token = create_access_token({
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
    })
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=_SECURE,
        samesite=_SAMESITE,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
    )
    return TokenResponse(
        token=token,
        expires_in=settings.access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit("10/minute;30/hour")
async def login(
    request: Request,
    payload: UserLogin,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    # Lockout check before hitting the DB
    if await is_locked_out(payload.username):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Account temporarily locked due to too many failed attempts. Try again in 15 minutes.",
        )

    result = await db.execute(select(User).where(User.username == payload.username))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.hashed_password):
        await record_login_failure(payload.username)
        logger.warning("Failed login for %s", payload.username)
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            "Authentication failed",
            "Invalid username or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated",
        )

    await clear_login_failures(payload.username)
    logger.info("User %s logged in", user.username)
    return _issue_token(response, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response, user: User = Depends(get_current_user)):
    response.delete_cookie(key="access_token", path="/")
    return {"message": "Logged out"}


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(response: Response, user: User = Depends(get_current_user)):
    return _issue_token(response, user)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: UserPasswordChange,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not verify_password(payload.current_password, user.hashed_password):
        raise bad_request("Invalid password", "Current password is incorrect")
    if payload.new_password == payload.current_password:
        raise bad_request("Invalid password", "New password must differ from the current one")

    user.hashed_password = hash_password(payload.new_password)
    await db.flush()
    logger.info("User %s changed password", user.username)
    return {"message": "Password changed successfully"}
