"""Academic calendar: at most one active year, and one active semester per year."""
import logging

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models import AcademicYear, Semester

logger = logging.getLogger(__name__)


async def activate_academic_year(db: AsyncSession, year_id: int) -> AcademicYear:
    """Deactivate every year, then activate ``year_id``."""
    year = await db.get(AcademicYear, year_id)
    if year is None:
        raise NotFoundError(f"Academic year {year_id} not found")

    await db.execute(
        update(AcademicYear)
        .where(AcademicYear.is_active.is_(True))
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )
    year.is_active = True
    await db.flush()
    logger.info("Academic year %s (%s) activated", year.id, year.name)
    return year


async def activate_semester(db: AsyncSession, semester_id: int) -> Semester:
    """Deactivate the other semesters of the same year, then activate ``semester_id``."""
    semester = await db.get(Semester, semester_id)
    if semester is None:
        raise NotFoundError(f"Semester {semester_id} not found")

    await db.execute(
        update(Semester)
        .where(
            Semester.academic_year_id == semester.academic_year_id,
            Semester.is_active.is_(True),
        )
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )
    semester.is_active = True
    await db.flush()
    logger.info("Semester %s (%s) activated", semester.id, semester.name)
    return semester


async def get_active_academic_year(db: AsyncSession) -> AcademicYear | None:
    result = await db.execute(select(AcademicYear).where(AcademicYear.is_active.is_(True)))
    return result.scalars().first()
