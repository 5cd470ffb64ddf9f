"""API routers."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.endpoints import (
    academic_years,
    allowed_terms,
    attendance,
    auth,
    excuses,
    reports,
    sessions,
    signatures,
    students,
    users,
)
from app.api.endpoints.auth import get_current_user, user_item
from app.core.database import get_db
from app.core.security import hash_password, verify_password
from app.models import User
from app.schemas.user import ChangePasswordRequest, ProfileUpdateRequest, UserItem

router = APIRouter()
router.include_router(auth.router)
router.include_router(users.router)
router.include_router(students.router)
router.include_router(sessions.router)
router.include_router(attendance.router)
router.include_router(signatures.router)
router.include_router(excuses.router)
router.include_router(academic_years.router)
router.include_router(allowed_terms.router)
router.include_router(reports.router)


@router.get(
    "/me",
    response_model=UserItem,
    tags=["api"],
    summary="Current user (protected)",
    responses={401: {"description": "Token missing, invalid or expired"}},
)
async def get_me(current_user: User = Depends(get_current_user)):
    """
    Returns the account of the JWT holder.
    **Requires:** header `Authorization: Bearer <access_token>`.
    """
    return user_item(current_user)


@router.patch(
    "/me",
    response_model=UserItem,
    tags=["api"],
    summary="Update own profile",
)
async def update_me(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Updates the fields sent (first_name, last_name, department, position)."""
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Send at least one field to update.",
        )
    for field, value in changes.items():
        setattr(current_user, field, value)
    await db.flush()
    await db.refresh(current_user)
    return user_item(current_user)


@router.post(
    "/me/change-password",
    tags=["api"],
    summary="Change own password",
    responses={400: {"description": "Current password is wrong"}},
)
async def change_password(
    body: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Requires the current password to confirm identity."""
    if not verify_password(body.current_password, current_user.password_hash or ""):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect.",
        )
    current_user.password_hash = hash_password(body.new_password)
    await db.flush()
    return {"message": "Password updated successfully"}


@router.get("/", tags=["api"], summary="API v1 root")
async def api_root():
    return {"message": "School Attendance API v1", "docs": "/docs", "redoc": "/redoc"}
