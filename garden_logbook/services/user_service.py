from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core import crypto
from garden_logbook.core.security import hash_password
from garden_logbook.models.user import User
from garden_logbook.schemas.user import UserCreate, UserUpdate


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate, role: str = "user") -> User:
    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email.lower(),
        hashed_password=hash_password(data.password),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def update_user(db: AsyncSession, user: User, data: UserUpdate) -> User:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user


async def record_login(db: AsyncSession, user: User) -> None:
    user.last_login = datetime.now(timezone.utc)
    await db.commit()


async def set_govee_api_key(db: AsyncSession, user: User, api_key: Optional[str]) -> User:
    user.encrypted_govee_api_key = crypto.encrypt(api_key) if api_key else None
    await db.commit()
    await db.refresh(user)
    return user


def get_govee_api_key(user: User) -> Optional[str]:
    """Decrypt the stored key. Raises ValueError/InvalidTag on corrupt ciphertext."""
    if not user.encrypted_govee_api_key:
        return None
    return crypto.decrypt(user.encrypted_govee_api_key)
