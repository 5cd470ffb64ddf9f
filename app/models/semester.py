"""Semester model (term inside an academic year)."""
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Date, ForeignKey, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.academic_year import AcademicYear


class Semester(TimestampMixin, Base):
    """Semester: First Semester, Second Semester, Summer; one active per year."""

    __tablename__ = "semesters"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="valid_semester_dates"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    academic_year_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("academic_years.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    academic_year: Mapped["AcademicYear"] = relationship("AcademicYear", back_populates="semesters")
