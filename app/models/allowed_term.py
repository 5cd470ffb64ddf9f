"""AllowedTerm model (an academic year / semester pair open for use, with its dates)."""
from datetime import date

from sqlalchemy import CheckConstraint, Date, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BigIntPK
from app.models.mixins import TimestampMixin


class AllowedTerm(TimestampMixin, Base):
    """Free-text term labels ("2024-2025", "First Semester") with a date range."""

    __tablename__ = "allowed_terms"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="valid_allowed_term_dates"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    academic_year: Mapped[str] = mapped_column(Text, nullable=False)
    semester: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
