"""
User management routes.

GET /api/user/profile  — current user
GET /api/user          — all users (ADMIN)
GET /api/user/{id}     — the user themselves, or any user for ADMIN
PUT /api/user/{id}     — edit name, email, role and status (ADMIN)
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from synprod.db import get_db
from synprod.api.auth_routes import validate_email
from synprod.api.deps import get_current_user, require_admin
from synprod.models.orm_models import User
from synprod.models.schemas import UpdateUserRequest, UserResponse
from synprod.services.user_service import UserService

router = APIRouter(prefix="/api/user", tags=["Users"])


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return UserResponse.from_user(user)


@router.get("", response_model=List[UserResponse])
async def list_users(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await UserService(db).list_users()
    return [UserResponse.from_user(u) for u in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await UserService(db).get_visible_user(user_id, user)
    return UserResponse.from_user(target)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    req: UpdateUserRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    email = validate_email(req.email)
    user = await UserService(db).update_user(user_id, req, email)
    return UserResponse.from_user(user)
