from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cliniclink.core.config import settings
from cliniclink.core.db import run_store
from cliniclink.core.security import create_access_token, hash_password, verify_password
from cliniclink.models.user import User, UserCreate, UserPublic, UserUpdate


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await run_store(session.execute(select(User).where(User.email == email.lower())))
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: int) -> User | None:
    result = await run_store(session.execute(select(User).where(User.id == user_id)))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(
        email=data.email.lower(),
        full_name=data.full_name,
        phone=data.phone,
        date_of_birth=data.date_of_birth,
        hashed_password=hash_password(data.password),
    )
    session.add(user)
    await run_store(session.flush())
    await run_store(session.refresh(user))
    return user


def user_to_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        date_of_birth=user.date_of_birth,
    )


def make_access_token(user_id: int) -> tuple[str, int]:
    return create_access_token(user_id), settings.access_token_expire_minutes * 60


async def login_user(
    session: AsyncSession, email: str, password: str
) -> tuple[User, str, int] | None:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    access, expires_in = make_access_token(user.id)
    return user, access, expires_in


async def signup_user(session: AsyncSession, data: UserCreate) -> tuple[User, str, int] | None:
    existing = await get_user_by_email(session, data.email)
    if existing:
        return None
    user = await create_user(session, data)
    access, expires_in = make_access_token(user.id)
    return user, access, expires_in


async def update_profile(session: AsyncSession, user: User, data: UserUpdate) -> User:
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    session.add(user)
    await run_store(session.flush())
    await run_store(session.refresh(user))
    return user
