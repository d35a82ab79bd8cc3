# podsearch/repository/auth_repo.py
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from podsearch.models.orm.user import User
from podsearch.models.status import UserRole
from podsearch.utils.password import hash_password, verify_password


def _as_uuid(value: str | uuid.UUID) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(
        select(User).where(User.email == email)
    )
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: str | uuid.UUID) -> User | None:
    user_uuid = _as_uuid(user_id)
    if user_uuid is None:
        return None

    result = await db.execute(
        select(User).where(User.id == user_uuid)
    )
    return result.scalar_one_or_none()


async def verify_user_password(
    db: AsyncSession,
    email: str,
    password: str,
) -> User | None:
    """Return the user when the password matches, otherwise None."""
    user = await get_user_by_email(db, email)
    if not user:
        return None

    if not verify_password(password, user.hashed_password):
        return None
    return user


async def create_user_with_password(
    db: AsyncSession,
    email: str,
    password: str,
    role: UserRole = UserRole.ADMIN,
) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(password),
        role=role,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    return user
