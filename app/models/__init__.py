"""SQLAlchemy models (database tables)."""
from app.models.user import User, UserRole, UserStatus
from app.models.student import Student
from app.models.session import Session, SessionType
from app.models.attendance import Attendance, AttendanceStatus
from app.models.signature import Signature
from app.models.excuse_application import ExcuseApplication, ExcuseStatus
from app.models.academic_year import AcademicYear
from app.models.semester import Semester
from app.models.allowed_term import AllowedTerm

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "Student",
    "Session",
    "SessionType",
    "Attendance",
    "AttendanceStatus",
    "Signature",
    "ExcuseApplication",
    "ExcuseStatus",
    "AcademicYear",
    "Semester",
    "AllowedTerm",
]
