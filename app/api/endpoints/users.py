"""Account administration: list, approve, reject and change role/status."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.endpoints.auth import require_role, user_item
from app.core.database import get_db
from app.models import User, UserRole
from app.schemas.user import ApprovalResponse, UserAdminUpdate, UserItem, UserListResponse
from app.services import account_service

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_role(UserRole.ADMIN)


@router.get(
    "",
    response_model=UserListResponse,
    summary="List accounts",
    description="All accounts, newest first, optionally filtered by status or role. Admin only.",
)
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    role: Annotated[str | None, Query()] = None,
):
    q = select(User).order_by(User.created_at.desc(), User.id.desc())
    if status_filter:
        q = q.where(User.status == status_filter)
    if role:
        q = q.where(User.role == role)
    users = (await db.execute(q)).scalars().all()
    return UserListResponse(users=[user_item(u) for u in users])


@router.post(
    "/{user_id}/approve",
    response_model=ApprovalResponse,
    summary="Approve a pending account",
)
async def approve_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_only),
):
    return await account_service.approve_user(db, user_id, admin.id)


@router.post(
    "/{user_id}/reject",
    response_model=ApprovalResponse,
    summary="Reject a pending account",
)
async def reject_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_only),
):
    return await account_service.reject_user(db, user_id, admin.id)


@router.patch(
    "/{user_id}",
    response_model=UserItem,
    summary="Change role or status",
)
async def update_user(
    user_id: int,
    body: UserAdminUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(admin_only),
):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Send at least one field to update.",
        )
    if user.id == admin.id and changes.get("role", UserRole.ADMIN) != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot remove their own admin role.",
        )
    for field, value in changes.items():
        setattr(user, field, value)
    await db.flush()
    await db.refresh(user)
    return user_item(user)
