"""Student directory endpoints, including spreadsheet import."""
from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.endpoints.auth import get_current_user
from app.core.database import get_db
from app.models import Student, User
from app.schemas.student import (
    ImportErrorItem,
    ImportSummary,
    StudentCreate,
    StudentFilterOptions,
    StudentImportResponse,
    StudentItem,
    StudentListResponse,
    StudentUpdate,
)
from app.services import student_import_service
from app.services.roster_service import filter_students

router = APIRouter(prefix="/students", tags=["students"])


def _matches_search(student: Student, term: str) -> bool:
    term = term.lower()
    return any(
        term in (value or "").lower()
        for value in (student.student_id, student.firstname, student.surname, student.full_name)
    )


async def _get_student_or_404(db: AsyncSession, student_id: int) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


async def _ensure_unique_school_id(db: AsyncSession, school_id: str, exclude_id: int | None = None):
    q = select(Student.id).where(Student.student_id == school_id)
    if exclude_id is not None:
        q = q.where(Student.id != exclude_id)
    if (await db.execute(q)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A student with ID '{school_id}' already exists",
        )


@router.get(
    "",
    response_model=StudentListResponse,
    summary="List students",
    description=(
        "Students sorted by surname and first name. Program/year filters ignore "
        "'All Programs'/'All Years'; section matching is loose and falls back to the "
        "program/year matches when no section matches."
    ),
)
async def list_students(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
    program: Annotated[str | None, Query()] = None,
    year: Annotated[str | None, Query()] = None,
    section: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query(description="Matches name or student ID")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=500)] = 50,
):
    students = await filter_students(db, program, year, section)
    if search and search.strip():
        students = [s for s in students if _matches_search(s, search.strip())]
    start = (page - 1) * page_size
    return StudentListResponse(
        total=len(students),
        page=page,
        page_size=page_size,
        students=[StudentItem.model_validate(s) for s in students[start:start + page_size]],
    )


@router.get(
    "/options",
    response_model=StudentFilterOptions,
    summary="Filter options",
    description="Distinct programs, years and sections present in the student table.",
)
async def filter_options(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    async def distinct(column) -> list[str]:
        result = await db.execute(select(column).distinct().order_by(column))
        return [v for v in result.scalars().all() if v]

    return StudentFilterOptions(
        programs=await distinct(Student.program),
        years=await distinct(Student.year),
        sections=await distinct(Student.section),
    )


@router.get(
    "/import/template",
    summary="Download import template",
    responses={200: {"content": {"application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": {}}}},
)
async def import_template(_: User = Depends(get_current_user)):
    return StreamingResponse(
        BytesIO(student_import_service.build_template()),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="student_import_template.xlsx"'},
    )


@router.post(
    "/import",
    response_model=StudentImportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Import students from .xlsx or .csv",
    description=(
        "Required columns: student_id, firstname, surname, program, year, section. "
        "Empty rows are skipped; invalid or duplicate rows are reported and the rest "
        "are inserted in one batch."
    ),
)
async def import_students(
    file: UploadFile = File(..., description="Spreadsheet (.xlsx or .csv)"),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    content = await file.read()
    try:
        df = student_import_service.read_student_file(content, file.filename or "")
    except student_import_service.ImportFileError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if df.empty:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The file has no rows.")

    result = await student_import_service.import_students(db, df)
    return StudentImportResponse(
        message=f"Imported {result.inserted} student(s)",
        summary=ImportSummary(
            total_rows=result.total_rows,
            inserted=result.inserted,
            skipped_empty=result.skipped_empty,
            errors=len(result.errors),
        ),
        errors=[ImportErrorItem(**e) for e in result.errors],
    )


@router.get("/{student_id}", response_model=StudentItem, summary="Get a student")
async def get_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return StudentItem.model_validate(await _get_student_or_404(db, student_id))


@router.post(
    "",
    response_model=StudentItem,
    status_code=status.HTTP_201_CREATED,
    summary="Create a student",
)
async def create_student(
    body: StudentCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    await _ensure_unique_school_id(db, body.student_id)
    student = Student(**body.model_dump())
    db.add(student)
    await db.flush()
    await db.refresh(student)
    return StudentItem.model_validate(student)


@router.patch("/{student_id}", response_model=StudentItem, summary="Update a student")
async def update_student(
    student_id: int,
    body: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    student = await _get_student_or_404(db, student_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("student_id"):
        await _ensure_unique_school_id(db, changes["student_id"], exclude_id=student_id)
    for field, value in changes.items():
        setattr(student, field, value.strip() if isinstance(value, str) else value)
    await db.flush()
    await db.refresh(student)
    return StudentItem.model_validate(student)


@router.delete(
    "/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a student",
    description="Also deletes the student's attendance, signatures and excuse applications.",
)
async def delete_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    student = await _get_student_or_404(db, student_id)
    await db.delete(student)
    await db.flush()
