"""Student model."""
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BigIntPK
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:
    from app.models.attendance import Attendance
    from app.models.excuse_application import ExcuseApplication
    from app.models.signature import Signature


class Student(TimestampMixin, Base):
    """Student identified by a school ID and placed in program / year / section."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    student_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    surname: Mapped[str] = mapped_column(Text, nullable=False)
    firstname: Mapped[str] = mapped_column(Text, nullable=False)
    middle_initial: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Academic placement ("BSIT", "1st", "BSIT 1A")
    program: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    year: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    section: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_no: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # No FK: signatures.student_id already points here
    primary_signature_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    attendance: Mapped[list["Attendance"]] = relationship(
        "Attendance", back_populates="student", cascade="all, delete-orphan", passive_deletes=True
    )
    signatures: Mapped[list["Signature"]] = relationship(
        "Signature", back_populates="student", cascade="all, delete-orphan", passive_deletes=True
    )
    excuse_applications: Mapped[list["ExcuseApplication"]] = relationship(
        "ExcuseApplication", back_populates="student", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.surname}".strip()
