"""Schemas for attendance reports."""
from datetime import date as date_type

from pydantic import BaseModel, Field, model_validator


class SessionReportItem(BaseModel):
    """Attendance summary of one session."""

    session_id: int
    title: str
    type: str
    date: date_type
    program: str
    year: str
    section: str
    total_expected: int
    present: int
    late: int
    absent: int
    excused: int
    unmarked: int
    attendance_rate: float = Field(description="(present + late) / total_expected * 100")


class SessionReportResponse(BaseModel):
    total_sessions: int
    sessions: list[SessionReportItem]


class AttendanceReportRequest(BaseModel):
    """Date range for the attendance summary PDF."""

    start_date: date_type | None = None
    end_date: date_type | None = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self
