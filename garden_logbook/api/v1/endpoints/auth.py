import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from garden_logbook.core.deps import CurrentUser, get_db
from garden_logbook.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password,
)
from garden_logbook.models.user import User
from garden_logbook.schemas.auth import RefreshRequest, TokenResponse
from garden_logbook.schemas.user import UserCreate, UserRead
from garden_logbook.services.user_service import (
    create_user,
    get_user_by_email,
    get_user_by_id,
    record_login,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    if await get_user_by_email(db, data.email) is not None:
        raise HTTPException(status_code=400, detail="Email already registered")
    user = await create_user(db, data)
    logger.info("auth: registered user %d", user.id)
    return user


@router.post("/login", response_model=TokenResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """OAuth2 password form; ``username`` carries the email address."""
    user = await get_user_by_email(db, form_data.username)
    if user is None or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    await record_login(db, user)
    return _issue_tokens(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    invalid = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    try:
        payload = decode_token(body.refresh_token)
        user_id = int(payload["sub"])
    except (JWTError, KeyError, ValueError):
        raise invalid
    # Access tokens are not accepted here
    if payload.get("type") != "refresh":
        raise invalid

    user = await get_user_by_id(db, user_id)
    if user is None or not user.is_active:
        raise invalid
    return _issue_tokens(user)


@router.get("/me", response_model=UserRead)
async def me(current_user: CurrentUser):
    return current_user


def _issue_tokens(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(str(user.id), user.role),
        refresh_token=create_refresh_token(str(user.id)),
    )
