import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError

from ..api.dependencies import get_repositories
from ..auth.jwt import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_current_user,
    get_password_hash,
    verify_password,
)
from ..config import settings
from ..models.models import User, new_id, utcnow
from ..repositories import Repositories
from ..schemas.schemas import Token, TokenRefreshRequest, UserCreate, UserRead
from ..services.activity import log_activity

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_token_response(user: User) -> Token:
    return Token(
        access_token=create_access_token(user.id, user.role),
        refresh_token=create_refresh_token(user.id),
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.post("/signup", response_model=UserRead, status_code=201)
def signup(payload: UserCreate, repos: Repositories = Depends(get_repositories)) -> User:
    if repos.users.get_by_email(payload.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        id=new_id(),
        email=payload.email.lower(),
        full_name=payload.full_name,
        hashed_password=get_password_hash(payload.password),
        role=payload.role.value,
        is_active=True,
        created_at=utcnow(),
    )
    user = repos.users.add(user)
    logger.info("User registered", extra={"user_id": user.id})
    log_activity(repos, "user_signed_up", user.id, {"role": user.role})
    return user


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    repos: Repositories = Depends(get_repositories),
) -> Token:
    user = repos.users.get_by_email(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive.")
    return _build_token_response(user)


@router.post("/refresh", response_model=Token)
def refresh_token(payload: TokenRefreshRequest, repos: Repositories = Depends(get_repositories)) -> Token:
    credentials_exception = HTTPException(status_code=401, detail="Invalid refresh token")
    try:
        decoded = decode_token(payload.refresh_token)
    except JWTError as exc:
        raise credentials_exception from exc

    if decoded.get("type") != "refresh":
        raise credentials_exception
    user_id = decoded.get("sub")
    user = repos.users.get(user_id) if user_id else None
    if not user or not user.is_active:
        raise credentials_exception
    return _build_token_response(user)


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)) -> User:
    return current_user
