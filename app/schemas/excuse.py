"""Schemas for excuse applications."""
from datetime import date as date_type, datetime

from pydantic import BaseModel, Field, field_validator

from app.models.excuse_application import ExcuseStatus


class ExcuseStudentSummary(BaseModel):
    id: int
    student_id: str
    full_name: str
    program: str
    year: str
    section: str


class ExcuseSessionSummary(BaseModel):
    id: int
    title: str
    date: date_type


class ExcuseItem(BaseModel):
    id: int
    student_id: int
    session_id: int | None = None
    absence_date: date_type
    reason: str
    documentation_url: str | None = None
    status: str
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    created_at: datetime
    updated_at: datetime
    student: ExcuseStudentSummary | None = None
    session: ExcuseSessionSummary | None = None


class ExcuseListResponse(BaseModel):
    total: int
    applications: list[ExcuseItem]


class ExcuseUpdate(BaseModel):
    session_id: int | None = None
    absence_date: date_type | None = None
    reason: str | None = None


class ExcuseReviewRequest(BaseModel):
    """Decision on a pending application."""

    status: str = Field(description="approved or rejected")
    review_notes: str | None = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in (ExcuseStatus.APPROVED, ExcuseStatus.REJECTED):
            raise ValueError("status must be 'approved' or 'rejected'")
        return v
