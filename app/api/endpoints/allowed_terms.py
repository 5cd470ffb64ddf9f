"""Allowed terms: academic year / semester labels open for use, managed by admins."""
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.endpoints.auth import get_current_user, require_role
from app.core.database import get_db
from app.models import AllowedTerm, User, UserRole
from app.schemas.academic import AllowedTermCreate, AllowedTermItem, AllowedTermListResponse

router = APIRouter(prefix="/allowed-terms", tags=["allowed-terms"])

admin_only = require_role(UserRole.ADMIN)


@router.get(
    "",
    response_model=AllowedTermListResponse,
    summary="List allowed terms",
    description="Newest first. `search` matches academic year or semester, case-insensitively.",
)
async def list_allowed_terms(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
    search: Annotated[str | None, Query()] = None,
):
    result = await db.execute(
        select(AllowedTerm).order_by(AllowedTerm.created_at.desc(), AllowedTerm.id.desc())
    )
    terms = list(result.scalars().all())
    if search and search.strip():
        needle = search.strip().lower()
        terms = [t for t in terms if needle in f"{t.academic_year} {t.semester}".lower()]
    return AllowedTermListResponse(
        total=len(terms), terms=[AllowedTermItem.model_validate(t) for t in terms]
    )


@router.post(
    "",
    response_model=AllowedTermItem,
    status_code=status.HTTP_201_CREATED,
    summary="Add an allowed term",
)
async def create_allowed_term(
    body: AllowedTermCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    term = AllowedTerm(**body.model_dump())
    db.add(term)
    await db.flush()
    await db.refresh(term)
    return AllowedTermItem.model_validate(term)


@router.delete(
    "/{term_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an allowed term",
)
async def delete_allowed_term(
    term_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    result = await db.execute(delete(AllowedTerm).where(AllowedTerm.id == term_id))
    if result.rowcount == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Allowed term not found")
