"""
JWT Authentication routes — login, refresh, me, invite onboarding, password reset.

Rate limiting for the public endpoints is enforced at the middleware level
(RateLimitMiddleware in main.py): 5 requests per minute per IP.

Email delivery is not wired up; invite and reset links are logged instead.
"""
import os
import re
import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from passlib.context import CryptContext
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from synprod.db import get_db
from synprod.api.deps import (
    ACCESS_TOKEN, ALGORITHM, REFRESH_TOKEN, SECRET_KEY,
    decode_token, get_current_user, require_admin,
)
from synprod.models.orm_models import User, Role, UserStatus
from synprod.models.schemas import UserResponse

logger = logging.getLogger("synprod-auth")

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")
_MIN_PASSWORD_LEN = 8

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))
INVITE_EXPIRE_DAYS = 7
RESET_EXPIRE_HOURS = 24

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, a password reset link has been sent."

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def validate_email(email: str) -> str:
    """Validate email format. Raises HTTPException 422 on failure."""
    email = email.strip().lower()
    if not _EMAIL_RE.match(email):
        raise HTTPException(status_code=422, detail="Invalid email format")
    return email


def _validate_password(password: str) -> None:
    if len(password) < _MIN_PASSWORD_LEN:
        raise HTTPException(
            status_code=422,
            detail=f"Password must be at least {_MIN_PASSWORD_LEN} characters"
        )


# ── Schemas ───────────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class InviteRequest(BaseModel):
    email: str
    role: Role = Role.PRODUCTION


class AcceptInviteRequest(BaseModel):
    token: str
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class InviteResponse(BaseModel):
    user_id: str
    email: str
    role: Role
    invite_token: str
    expires_at: datetime


class MessageResponse(BaseModel):
    message: str


# ── Token helpers ─────────────────────────────────────────────────────────────

def _create_token(user: User, token_type: str, lifetime: timedelta) -> str:
    to_encode = {
        "sub": user.id,
        "email": user.email,
        "role": user.role.value,
        "type": token_type,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(user: User) -> str:
    return _create_token(user, ACCESS_TOKEN, timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user: User) -> str:
    return _create_token(user, REFRESH_TOKEN, timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS))


def _token_pair(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user),
        refresh_token=create_refresh_token(user),
        user=UserResponse.from_user(user),
    )


def _is_expired(expiry: Optional[datetime]) -> bool:
    if expiry is None:
        return True
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return expiry < datetime.now(timezone.utc)


# ── Routes ────────────────────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest, db: AsyncSession = Depends(get_db)):
    email = validate_email(req.email)
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user or not user.hashed_password or not pwd_context.verify(req.password, user.hashed_password):
        logger.warning("Bad credentials attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=403, detail="Account is not active. Please contact your administrator.")
    return _token_pair(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(req: RefreshRequest, db: AsyncSession = Depends(get_db)):
    payload = decode_token(req.refresh_token, REFRESH_TOKEN)
    result = await db.execute(select(User).where(User.id == payload["sub"]))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=403, detail="Account is not active. Please contact your administrator.")
    return _token_pair(user)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return UserResponse.from_user(user)


@router.post("/invite", response_model=InviteResponse)
async def invite_user(
    req: InviteRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    email = validate_email(req.email)
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="A user with this email already exists")

    token = uuid.uuid4().hex
    expires_at = datetime.now(timezone.utc) + timedelta(days=INVITE_EXPIRE_DAYS)
    user = User(
        email=email,
        role=req.role,
        status=UserStatus.PENDING,
        invite_token=token,
        invite_token_expiry=expires_at,
    )
    db.add(user)
    await db.flush()
    logger.info(f"Invitation issued for {email} ({req.role.value}) by {admin.email}; token={token}")
    return InviteResponse(user_id=user.id, email=email, role=req.role, invite_token=token, expires_at=expires_at)


@router.post("/accept-invite", response_model=MessageResponse)
async def accept_invite(req: AcceptInviteRequest, db: AsyncSession = Depends(get_db)):
    _validate_password(req.password)
    result = await db.execute(select(User).where(User.invite_token == req.token))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=400, detail="Invalid invitation token")
    if _is_expired(user.invite_token_expiry):
        raise HTTPException(status_code=400, detail="Invitation token has expired. Please contact your administrator.")
    if user.status != UserStatus.PENDING:
        raise HTTPException(status_code=400, detail="This invitation has already been used.")

    user.first_name = req.first_name.strip()
    user.last_name = req.last_name.strip()
    user.hashed_password = pwd_context.hash(req.password)
    user.status = UserStatus.ACTIVE
    user.invite_token = None
    user.invite_token_expiry = None
    logger.info(f"Invitation accepted by {user.email}")
    return MessageResponse(message="Account activated successfully. You can now log in.")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(req: ForgotPasswordRequest, db: AsyncSession = Depends(get_db)):
    # Same response whether or not the account exists
    email = req.email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user and user.status == UserStatus.ACTIVE:
        token = uuid.uuid4().hex
        user.reset_token = token
        user.reset_token_expiry = datetime.now(timezone.utc) + timedelta(hours=RESET_EXPIRE_HOURS)
        logger.info(f"Password reset issued for {email}; token={token}")
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(req: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    _validate_password(req.new_password)
    result = await db.execute(select(User).where(User.reset_token == req.token))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=400, detail="Invalid reset token")
    if _is_expired(user.reset_token_expiry):
        raise HTTPException(status_code=400, detail="Reset token has expired")
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(status_code=400, detail="Account is not active. Please contact your administrator.")

    user.hashed_password = pwd_context.hash(req.new_password)
    user.reset_token = None
    user.reset_token_expiry = None
    logger.info(f"Password reset completed for {user.email}")
    return MessageResponse(message="Password reset successfully. You can now log in with your new password.")
