import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from forum_api.config import ACCESS_TOKEN_EXPIRE_MINUTES, AUTH_RATE
from forum_api.database import get_async_session
from forum_api.limiter import limiter
from forum_api.models.user_model import User
from forum_api.schemas.user_schemas import MeOut, MeResponse, TokenOut, UserCreate, UserLogin, UserOut
from forum_api.utils.passwords import hash_password, verify_password
from forum_api.utils.token_utils import create_access_token, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _token_response(user: User) -> TokenOut:
    try:
        access_token = create_access_token(user)
    except RuntimeError as e:
        logger.error("token creation failed for user %s: %s", user.id, e)
        raise HTTPException(status_code=500, detail="Token creation failed")

    return TokenOut(
        access_token=access_token,
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserOut(id=user.id, name=user.name),
    )


async def _conflicting_users(db: AsyncSession, name: str, email: str):
    # name OR email conflict in a single round-trip
    result = await db.execute(
        select(User).where(
            (User.name == name) | (func.lower(User.email) == email)
        )
    )
    return result.scalars().all()


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE)
async def register(request: Request, user: UserCreate, db: AsyncSession = Depends(get_async_session)):
    name_norm = user.name.strip()
    email_norm = str(user.email).strip().lower()

    existing = await _conflicting_users(db, name_norm, email_norm)

    if any((u.email or "").strip().lower() == email_norm for u in existing):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    if any(u.name == name_norm for u in existing):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Name already exists")

    new_user = User(
        name=name_norm,
        email=email_norm,
        password=hash_password(user.password),
        role="GENERAL",
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        # lost a race with a concurrent signup for the same name or email
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Name or email already exists")

    logger.info("user %s registered", new_user.id)
    return _token_response(new_user)


@router.post("/login", response_model=TokenOut)
@limiter.limit(AUTH_RATE)
async def login(request: Request, user: UserLogin, db: AsyncSession = Depends(get_async_session)):
    if not user.name.strip() or not user.password.strip():
        raise HTTPException(status_code=400, detail="Name and password are required")

    login_norm = user.name.strip()
    result = await db.execute(
        select(User).where(or_(User.name == login_norm, func.lower(User.email) == login_norm.lower()))
    )
    db_user = result.scalars().first()

    if not db_user or not verify_password(user.password, db_user.password):
        logger.info("failed login for %r", login_norm)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return _token_response(db_user)


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    return MeResponse(
        data=MeOut(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=str(user.created_at),
        )
    )


@router.post("/refresh", response_model=TokenOut)
async def refresh(user: User = Depends(get_current_user)):
    return _token_response(user)
