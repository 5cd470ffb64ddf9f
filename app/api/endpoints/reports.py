"""Attendance report endpoints: per-session summaries and PDF downloads."""
import re
from datetime import date
from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.endpoints.auth import get_current_user
from app.core.database import get_db, get_session_factory
from app.models import User
from app.schemas.report import AttendanceReportRequest, SessionReportItem, SessionReportResponse
from app.services import report_pdf_service, report_service
from app.services.roster_service import get_session_roster

router = APIRouter(prefix="/reports", tags=["reports"])


def _pdf_response(pdf_bytes: bytes, name: str) -> StreamingResponse:
    filename = f"{re.sub(r'[^A-Za-z0-9._-]+', '_', name)}.pdf"
    return StreamingResponse(
        BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _period(start: date | None, end: date | None) -> str:
    if start and end:
        return f"{start.isoformat()} to {end.isoformat()}"
    if start:
        return f"From {start.isoformat()}"
    if end:
        return f"Until {end.isoformat()}"
    return ""


@router.get(
    "/sessions",
    response_model=SessionReportResponse,
    summary="Attendance summary per session",
    description="Expected attendees, status totals and attendance rate for each session in the date range.",
)
async def session_summaries(
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    _: User = Depends(get_current_user),
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
):
    if start_date and end_date and end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must not be before start_date",
        )
    sessions = await report_service.list_sessions_in_range(db, start_date, end_date)
    await db.commit()
    summaries = await report_service.summarize_sessions(db, session_factory, sessions)
    return SessionReportResponse(
        total_sessions=len(summaries),
        sessions=[SessionReportItem(**s) for s in summaries],
    )


@router.post(
    "/sessions/{session_id}/pdf",
    summary="Session report PDF",
    responses={
        200: {"content": {"application/pdf": {}}, "description": "Generated PDF"},
        404: {"description": "Session not found"},
    },
)
async def session_report_pdf(
    session_id: int,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    current_user: User = Depends(get_current_user),
):
    roster = await get_session_roster(db, session_id)
    session = roster.session
    await db.commit()
    [summary] = await report_service.summarize_sessions(db, session_factory, [session])
    students = [
        {
            "student_id": e.student.student_id,
            "surname": e.student.surname,
            "firstname": e.student.firstname,
            "section": e.student.section,
            "status": e.status,
            "time_in": e.time_in,
            "time_out": e.time_out,
        }
        for e in roster.entries
    ]
    pdf_bytes = report_pdf_service.generate_session_report(
        {
            "title": session.title,
            "date": session.date.isoformat(),
            "program": session.program,
            "year": session.year,
            "section": session.section,
        },
        summary,
        students,
        generated_by=current_user.full_name or current_user.email,
    )
    return _pdf_response(pdf_bytes, f"Session {session.title} {session.date.isoformat()}")


@router.post(
    "/attendance/pdf",
    summary="Attendance summary PDF",
    responses={200: {"content": {"application/pdf": {}}, "description": "Generated PDF"}},
)
async def attendance_summary_pdf(
    body: AttendanceReportRequest,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    current_user: User = Depends(get_current_user),
):
    sessions = await report_service.list_sessions_in_range(db, body.start_date, body.end_date)
    await db.commit()
    summaries = await report_service.summarize_sessions(db, session_factory, sessions)
    for s in summaries:
        s["date"] = s["date"].isoformat()
    pdf_bytes = report_pdf_service.generate_attendance_summary(
        summaries,
        period=_period(body.start_date, body.end_date),
        generated_by=current_user.full_name or current_user.email,
    )
    return _pdf_response(pdf_bytes, "Attendance Summary")
