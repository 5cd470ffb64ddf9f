"""ExcuseApplication model (student claim for an absence, with review workflow)."""
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Date, DateTime, ForeignKey, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.session import Session
    from app.models.student import Student
    from app.models.user import User


class ExcuseStatus:
    """Allowed values for excuse_applications.status."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (PENDING, APPROVED, REJECTED)


class ExcuseApplication(TimestampMixin, Base):
    """Excuse for an absence on a date, optionally tied to a session."""

    __tablename__ = "excuse_applications"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    student_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("sessions.id", ondelete="SET NULL"), nullable=True
    )
    absence_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    documentation_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=ExcuseStatus.PENDING, server_default=text("'pending'"), index=True
    )
    reviewed_by: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    student: Mapped["Student"] = relationship("Student", back_populates="excuse_applications")
    session: Mapped["Session | None"] = relationship("Session", back_populates="excuse_applications")
    reviewer: Mapped["User | None"] = relationship("User")
