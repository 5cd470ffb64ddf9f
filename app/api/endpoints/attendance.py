"""Attendance endpoints: upsert marks and signature-verified check-in."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.endpoints.auth import get_current_user
from app.core.database import get_db
from app.models import AttendanceStatus, Student, User
from app.models.mixins import utcnow
from app.schemas.attendance import (
    AttendanceBulkRequest,
    AttendanceItem,
    AttendanceListResponse,
    AttendanceMarkRequest,
)
from app.schemas.signature import VerifyAttendanceResponse
from app.services import attendance_service
from app.services.roster_service import get_session_or_404
from app.services.verification_client import VerificationClient, get_verification_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["attendance"])


async def _ensure_student(db: AsyncSession, student_id: int) -> None:
    if await db.get(Student, student_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Student {student_id} not found")


@router.put(
    "",
    response_model=AttendanceItem,
    summary="Mark attendance",
    description="Insert or overwrite the attendance of one student at one session.",
)
async def mark_attendance(
    body: AttendanceMarkRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    await get_session_or_404(db, body.session_id)
    await _ensure_student(db, body.student_id)
    record = await attendance_service.mark_attendance(
        db, body.session_id, body.student_id, body.status, body.time_in, body.time_out
    )
    return AttendanceItem.model_validate(record)


@router.put(
    "/bulk",
    response_model=AttendanceListResponse,
    summary="Mark attendance for several students",
)
async def mark_attendance_bulk(
    body: AttendanceBulkRequest,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    await get_session_or_404(db, body.session_id)
    for entry in body.entries:
        await _ensure_student(db, entry.student_id)
    records = await attendance_service.mark_attendance_bulk(
        db,
        body.session_id,
        [
            attendance_service.AttendanceMark(e.student_id, e.status, e.time_in, e.time_out)
            for e in body.entries
        ],
    )
    return AttendanceListResponse(
        session_id=body.session_id,
        records=[AttendanceItem.model_validate(r) for r in records],
    )


@router.get("", response_model=AttendanceListResponse, summary="Attendance of a session")
async def list_attendance(
    session_id: Annotated[int, Query()],
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    await get_session_or_404(db, session_id)
    records = await attendance_service.list_session_attendance(db, session_id)
    return AttendanceListResponse(
        session_id=session_id,
        records=[AttendanceItem.model_validate(r) for r in records],
    )


@router.delete(
    "/{attendance_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an attendance record",
)
async def delete_attendance(
    attendance_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    await attendance_service.delete_attendance(db, attendance_id)


@router.post(
    "/verify",
    response_model=VerifyAttendanceResponse,
    summary="Check in by signature",
    description=(
        "Sends the signature to the verification service. When it reports a match for a "
        "known student and a session is given, that student is marked present."
    ),
)
async def verify_attendance(
    file: UploadFile = File(..., description="Signature image"),
    session_id: Annotated[int | None, Form()] = None,
    db: AsyncSession = Depends(get_db),
    client: VerificationClient = Depends(get_verification_client),
    _: User = Depends(get_current_user),
):
    if session_id is not None:
        await get_session_or_404(db, session_id)
    image = await file.read()
    verification = await client.verify(
        image,
        filename=file.filename or "signature.png",
        content_type=file.content_type or "image/png",
        session_id=session_id,
    )

    attendance_id = None
    student_id = verification.predicted_student_id
    if verification.success and verification.match and student_id and session_id is not None:
        if await db.get(Student, student_id) is None:
            logger.warning("Verification predicted unknown student %s", student_id)
        else:
            record = await attendance_service.mark_attendance(
                db, session_id, student_id, AttendanceStatus.PRESENT, time_in=utcnow()
            )
            attendance_id = record.id
    return VerifyAttendanceResponse(verification=verification, attendance_id=attendance_id)
