import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cliniclink.api.deps import get_current_user, get_session
from cliniclink.api.schemas.auth import (
    AccessToken,
    LoginRequest,
    ProfileUpdateRequest,
    SignupRequest,
)
from cliniclink.core.clock import local_now
from cliniclink.models.user import User, UserCreate, UserPublic, UserUpdate
from cliniclink.services.auth_service import (
    login_user,
    signup_user,
    update_profile,
    user_to_public,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=AccessToken)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> AccessToken:
    result = await login_user(session, body.email, body.password)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    _, access, expires_in = result
    return AccessToken(access_token=access, expires_in=expires_in)


@router.post("/signup", response_model=AccessToken, status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    session: AsyncSession = Depends(get_session),
) -> AccessToken:
    data = UserCreate(
        email=body.email,
        password=body.password,
        full_name=body.full_name or body.name,
        phone=body.phone,
        date_of_birth=body.date_of_birth,
    )
    result = await signup_user(session, data)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )
    user, access, expires_in = result
    logger.info("New account %s", user.id)
    return AccessToken(access_token=access, expires_in=expires_in)


@router.get("/me", response_model=UserPublic)
async def me(current_user: User = Depends(get_current_user)) -> UserPublic:
    return user_to_public(current_user)


@router.patch("/me", response_model=UserPublic)
async def edit_me(
    body: ProfileUpdateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> UserPublic:
    if body.date_of_birth and body.date_of_birth > local_now().date():
        raise HTTPException(
            status_code=422,
            detail="Date of birth cannot be in the future",
        )
    data = UserUpdate(**body.model_dump(exclude_unset=True))
    user = await update_profile(session, current_user, data)
    return user_to_public(user)
