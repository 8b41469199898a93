"""
User Service — admin-side account management.

Rules:
  - a user may read their own record; ADMIN may read anyone's
  - only ADMIN may update accounts (name, email, role, status); this is the
    only way to move a user to INACTIVE or change a role after invite
  - emails are unique (stored lower-cased)
"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from synprod.models.orm_models import Role, User
from synprod.models.schemas import UpdateUserRequest
from synprod.services.exceptions import DuplicateEmail, ProfileAccessDenied, UserNotFound

logger = logging.getLogger("synprod-users")


def ensure_can_view(user_id: str, current_user: User) -> None:
    if current_user.id != user_id and current_user.role != Role.ADMIN:
        logger.warning(f"User {current_user.id} attempted to read profile {user_id}")
        raise ProfileAccessDenied("You can only access your own profile")


class UserService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.email))
        return list(result.scalars().all())

    async def get_user(self, user_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFound(user_id)
        return user

    async def get_visible_user(self, user_id: str, current_user: User) -> User:
        ensure_can_view(user_id, current_user)
        if current_user.id == user_id:
            return current_user
        return await self.get_user(user_id)

    async def update_user(self, user_id: str, req: UpdateUserRequest, email: str) -> User:
        """Apply an admin edit. ``email`` is the already-normalised address."""
        user = await self.get_user(user_id)

        result = await self.db.execute(select(User).where(User.email == email, User.id != user_id))
        if result.scalar_one_or_none() is not None:
            raise DuplicateEmail(email)

        user.first_name = req.first_name.strip()
        user.last_name = req.last_name.strip()
        user.email = email
        user.role = req.role
        user.status = req.status
        try:
            await self.db.flush()
        except IntegrityError:
            # concurrent edit claimed the address between the check and the flush
            raise DuplicateEmail(email) from None
        logger.info(f"User {user_id} updated: role={req.role.value} status={req.status.value}")
        return user
