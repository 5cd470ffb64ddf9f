"""Session model (class, event or other activity that takes attendance)."""
from datetime import date, time
from typing import TYPE_CHECKING

from sqlalchemy import Date, Integer, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.attendance import Attendance
    from app.models.excuse_application import ExcuseApplication


class SessionType:
    """Allowed values for sessions.type."""
    CLASS = "class"
    EVENT = "event"
    OTHER = "other"

    ALL = (CLASS, EVENT, OTHER)


class Session(TimestampMixin, Base):
    """Scheduled session targeting a (program, year, section) population.

    Each target field holds either a concrete value or an "ALL" sentinel such as
    "All Programs"; see app.services.roster_service.is_all_value.
    """

    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False, default=SessionType.CLASS)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    time_in: Mapped[time | None] = mapped_column(Time, nullable=True)
    time_out: Mapped[time | None] = mapped_column(Time, nullable=True)
    program: Mapped[str] = mapped_column(Text, nullable=False, default="All Programs")
    year: Mapped[str] = mapped_column(Text, nullable=False, default="All Year Levels")
    section: Mapped[str] = mapped_column(Text, nullable=False, default="All Sections")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    attendance: Mapped[list["Attendance"]] = relationship(
        "Attendance", back_populates="session", cascade="all, delete-orphan", passive_deletes=True
    )
    excuse_applications: Mapped[list["ExcuseApplication"]] = relationship(
        "ExcuseApplication", back_populates="session", passive_deletes=True
    )
