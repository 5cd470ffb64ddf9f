"""Authentication endpoints: login, sign-up and the dependencies that protect routes."""
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import create_access_token, decode_access_token, verify_password
from app.models import User, UserRole, UserStatus
from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.user import SignupRequest, UserItem
from app.services import account_service

router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)

_STATUS_MESSAGES = {
    UserStatus.PENDING: "Account is pending approval. Contact an administrator.",
    UserStatus.INACTIVE: "Account is inactive. Contact an administrator.",
    UserStatus.SUSPENDED: "Account is suspended. Contact an administrator.",
}


def user_item(user: User) -> UserItem:
    item = UserItem.model_validate(user)
    item.role_label = UserRole.LABELS.get(user.role, user.role)
    return item


def _ensure_active(user: User, headers: dict | None = None) -> None:
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=_STATUS_MESSAGES.get(user.status, "Account is not active."),
            headers=headers,
        )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    response_description="JWT for the Authorization header",
    responses={
        200: {"description": "Valid credentials, access_token returned"},
        401: {"description": "Wrong email or password"},
        403: {"description": "Account not active (pending, inactive or suspended)"},
    },
)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Authenticate with **email** and **password**.
    Send the returned token as `Authorization: Bearer <access_token>` on protected routes.
    """
    result = await db.execute(select(User).where(User.email == data.email.lower()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(data.password, user.password_hash or ""):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Wrong email or password",
        )
    _ensure_active(user)
    token = create_access_token(user.id, email=user.email, role=user.role)
    return TokenResponse(access_token=token, role=user.role)


@router.post(
    "/signup",
    response_model=UserItem,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="Creates an account in 'pending' status. An admin must approve it before login works.",
)
async def signup(body: SignupRequest, db: AsyncSession = Depends(get_db)):
    user = await account_service.create_account(
        db,
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
        department=body.department,
        position=body.position,
    )
    return user_item(user)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Dependency: requires a valid JWT of an active account and returns that user."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token missing or invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalid or expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = await db.get(User, payload.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    _ensure_active(user, headers={"WWW-Authenticate": "Bearer"})
    return user


def require_role(*roles: str) -> Callable:
    """Dependency that requires the current user to hold one of ``roles``."""

    async def _check(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(UserRole.LABELS.get(r, r) for r in roles)}",
            )
        return current_user

    return _check
