"""Academic calendar endpoints: academic years and their semesters."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.endpoints.auth import get_current_user, require_role
from app.core.database import get_db
from app.models import AcademicYear, Semester, User, UserRole
from app.schemas.academic import (
    AcademicYearCreate,
    AcademicYearItem,
    AcademicYearListResponse,
    AcademicYearUpdate,
    SemesterCreate,
    SemesterItem,
    SemesterUpdate,
)
from app.services import academic_service

router = APIRouter(prefix="/academic-years", tags=["academic-years"])

admin_only = require_role(UserRole.ADMIN)


async def _get_year(db: AsyncSession, year_id: int) -> AcademicYear:
    result = await db.execute(
        select(AcademicYear)
        .options(selectinload(AcademicYear.semesters))
        .where(AcademicYear.id == year_id)
        .execution_options(populate_existing=True)
    )
    year = result.scalar_one_or_none()
    if not year:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Academic year not found")
    return year


async def _get_semester(db: AsyncSession, semester_id: int) -> Semester:
    semester = await db.get(Semester, semester_id)
    if not semester:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Semester not found")
    return semester


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: int | None = None):
    q = select(AcademicYear.id).where(AcademicYear.name == name)
    if exclude_id is not None:
        q = q.where(AcademicYear.id != exclude_id)
    if (await db.execute(q)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"An academic year named '{name}' already exists",
        )


def _check_range(start, end):
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must be after start_date",
        )


@router.get(
    "",
    response_model=AcademicYearListResponse,
    summary="List academic years",
    description="Newest first, each with its semesters.",
)
async def list_academic_years(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    result = await db.execute(
        select(AcademicYear)
        .options(selectinload(AcademicYear.semesters))
        .order_by(AcademicYear.start_date.desc(), AcademicYear.id.desc())
    )
    years = result.scalars().unique().all()
    return AcademicYearListResponse(academic_years=[AcademicYearItem.model_validate(y) for y in years])


@router.post(
    "",
    response_model=AcademicYearItem,
    status_code=status.HTTP_201_CREATED,
    summary="Create an academic year",
    description="New years start inactive.",
)
async def create_academic_year(
    body: AcademicYearCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    await _ensure_unique_name(db, body.name)
    year = AcademicYear(**body.model_dump(), is_active=False)
    db.add(year)
    await db.flush()
    return AcademicYearItem.model_validate(await _get_year(db, year.id))


@router.patch("/{year_id}", response_model=AcademicYearItem, summary="Update an academic year")
async def update_academic_year(
    year_id: int,
    body: AcademicYearUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    year = await _get_year(db, year_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("name"):
        await _ensure_unique_name(db, changes["name"], exclude_id=year_id)
    for field, value in changes.items():
        setattr(year, field, value)
    _check_range(year.start_date, year.end_date)
    await db.flush()
    return AcademicYearItem.model_validate(await _get_year(db, year_id))


@router.delete(
    "/{year_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an academic year and its semesters",
)
async def delete_academic_year(
    year_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    year = await _get_year(db, year_id)
    await db.delete(year)
    await db.flush()


@router.patch(
    "/{year_id}/activate",
    response_model=AcademicYearItem,
    summary="Activate an academic year",
    description="Activates the year and deactivates every other one.",
)
async def activate_academic_year(
    year_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    await academic_service.activate_academic_year(db, year_id)
    return AcademicYearItem.model_validate(await _get_year(db, year_id))


@router.post(
    "/{year_id}/semesters",
    response_model=SemesterItem,
    status_code=status.HTTP_201_CREATED,
    summary="Add a semester",
)
async def create_semester(
    year_id: int,
    body: SemesterCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    await _get_year(db, year_id)
    semester = Semester(academic_year_id=year_id, is_active=False, **body.model_dump())
    db.add(semester)
    await db.flush()
    return SemesterItem.model_validate(semester)


@router.patch("/semesters/{semester_id}", response_model=SemesterItem, summary="Update a semester")
async def update_semester(
    semester_id: int,
    body: SemesterUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    semester = await _get_semester(db, semester_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(semester, field, value)
    _check_range(semester.start_date, semester.end_date)
    await db.flush()
    return SemesterItem.model_validate(semester)


@router.delete(
    "/semesters/{semester_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a semester",
)
async def delete_semester(
    semester_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    semester = await _get_semester(db, semester_id)
    await db.delete(semester)
    await db.flush()


@router.patch(
    "/semesters/{semester_id}/activate",
    response_model=SemesterItem,
    summary="Activate a semester",
    description="Activates the semester and deactivates the other semesters of the same year.",
)
async def activate_semester(
    semester_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(admin_only),
):
    return SemesterItem.model_validate(await academic_service.activate_semester(db, semester_id))
