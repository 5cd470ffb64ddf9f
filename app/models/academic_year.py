"""AcademicYear model (school year such as 2025-2026)."""
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, Date, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.semester import Semester


class AcademicYear(TimestampMixin, Base):
    """Academic year with start/end dates and an active flag (at most one active)."""

    __tablename__ = "academic_years"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="valid_academic_year_dates"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    semesters: Mapped[list["Semester"]] = relationship(
        "Semester",
        back_populates="academic_year",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Semester.start_date",
    )
