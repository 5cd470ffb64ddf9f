"""User model (admins, staff and SSG officers who operate the system)."""
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BigIntPK
from app.models.mixins import TimestampMixin


class UserRole:
    """Allowed values for users.role."""
    ADMIN = "admin"
    STAFF = "staff"
    SSG_OFFICER = "ssg_officer"

    ALL = (ADMIN, STAFF, SSG_OFFICER)
    LABELS = {ADMIN: "Admin", STAFF: "Staff", SSG_OFFICER: "SSG Officer"}


class UserStatus:
    """Allowed values for users.status. New sign-ups wait in PENDING for approval."""
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"

    ALL = (PENDING, ACTIVE, INACTIVE, SUSPENDED)


class User(TimestampMixin, Base):
    """Account with a role and an approval status."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(
        Text, nullable=False, default=UserRole.SSG_OFFICER, server_default=text("'ssg_officer'")
    )
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=UserStatus.PENDING, server_default=text("'pending'")
    )
    department: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[str | None] = mapped_column(Text, nullable=True)

    approved_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
