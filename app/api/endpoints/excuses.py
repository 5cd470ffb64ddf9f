"""Excuse application endpoints."""
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.endpoints.auth import get_current_user, require_role
from app.core.database import get_db
from app.models import ExcuseApplication, ExcuseStatus, Session, User, UserRole
from app.schemas.excuse import (
    ExcuseItem,
    ExcuseListResponse,
    ExcuseReviewRequest,
    ExcuseSessionSummary,
    ExcuseStudentSummary,
    ExcuseUpdate,
)
from app.services import excuse_service
from app.services.storage_service import StorageService, get_storage

router = APIRouter(prefix="/excuses", tags=["excuses"])

reviewers = require_role(UserRole.ADMIN, UserRole.STAFF)


def _excuse_item(excuse: ExcuseApplication) -> ExcuseItem:
    student = excuse.student
    session = excuse.session
    return ExcuseItem(
        id=excuse.id,
        student_id=excuse.student_id,
        session_id=excuse.session_id,
        absence_date=excuse.absence_date,
        reason=excuse.reason,
        documentation_url=excuse.documentation_url,
        status=excuse.status,
        reviewed_by=excuse.reviewed_by,
        reviewed_at=excuse.reviewed_at,
        review_notes=excuse.review_notes,
        created_at=excuse.created_at,
        updated_at=excuse.updated_at,
        student=ExcuseStudentSummary(
            id=student.id,
            student_id=student.student_id,
            full_name=student.full_name,
            program=student.program,
            year=student.year,
            section=student.section,
        ) if student else None,
        session=ExcuseSessionSummary(
            id=session.id, title=session.title, date=session.date
        ) if session else None,
    )


@router.get("", response_model=ExcuseListResponse, summary="List excuse applications")
async def list_excuses(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
    status_filter: Annotated[str | None, Query(alias="status")] = None,
):
    if status_filter and status_filter not in ExcuseStatus.ALL:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"status must be one of: {', '.join(ExcuseStatus.ALL)}",
        )
    total, excuses = await excuse_service.list_excuses(db, status_filter)
    return ExcuseListResponse(total=total, applications=[_excuse_item(e) for e in excuses])


@router.get("/{excuse_id}", response_model=ExcuseItem, summary="Get an excuse application")
async def get_excuse(
    excuse_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return _excuse_item(await excuse_service.get_excuse_or_404(db, excuse_id))


@router.post(
    "",
    response_model=ExcuseItem,
    status_code=status.HTTP_201_CREATED,
    summary="File an excuse application",
    description="Multipart form; the optional letter is stored in the excuse-letters bucket.",
)
async def create_excuse(
    student_id: Annotated[int, Form()],
    reason: Annotated[str, Form(min_length=1)],
    session_id: Annotated[int | None, Form()] = None,
    absence_date: Annotated[date | None, Form(description="Defaults to today")] = None,
    letter: UploadFile | None = File(None, description="Excuse letter (pdf or image)"),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage),
    _: User = Depends(get_current_user),
):
    letter_data = None
    if letter is not None and letter.filename:
        letter_data = (letter.filename, await letter.read(), letter.content_type)
    excuse = await excuse_service.create_excuse(
        db,
        storage,
        student_id=student_id,
        reason=reason.strip(),
        session_id=session_id,
        absence_date=absence_date,
        letter=letter_data,
    )
    return _excuse_item(excuse)


@router.patch("/{excuse_id}", response_model=ExcuseItem, summary="Update an excuse application")
async def update_excuse(
    excuse_id: int,
    body: ExcuseUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    excuse = await excuse_service.get_excuse_or_404(db, excuse_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("session_id") is not None and await db.get(Session, changes["session_id"]) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    for field, value in changes.items():
        setattr(excuse, field, value)
    await db.flush()
    return _excuse_item(await excuse_service.get_excuse_or_404(db, excuse_id))


@router.post(
    "/{excuse_id}/review",
    response_model=ExcuseItem,
    summary="Approve or reject an application",
    description="Only pending applications can be reviewed. Approval marks the student excused for the linked session.",
)
async def review_excuse(
    excuse_id: int,
    body: ExcuseReviewRequest,
    db: AsyncSession = Depends(get_db),
    reviewer: User = Depends(reviewers),
):
    excuse = await excuse_service.review_excuse(
        db, excuse_id, body.status, reviewer.id, body.review_notes
    )
    return _excuse_item(excuse)


@router.delete(
    "/{excuse_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an excuse application",
)
async def delete_excuse(
    excuse_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    await excuse_service.delete_excuse(db, excuse_id)
