"""Schemas for attendance marking."""
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from app.models.attendance import AttendanceStatus


def _check_status(v: str) -> str:
    if v not in AttendanceStatus.ALL:
        raise ValueError(f"status must be one of: {', '.join(AttendanceStatus.ALL)}")
    return v


StatusStr = Annotated[str, AfterValidator(_check_status)]


class AttendanceMarkRequest(BaseModel):
    """Body for marking one student at one session."""

    session_id: int
    student_id: int = Field(description="Internal student id")
    status: StatusStr = Field(examples=["present"])
    time_in: datetime | None = None
    time_out: datetime | None = None


class AttendanceBulkEntry(BaseModel):
    student_id: int
    status: StatusStr
    time_in: datetime | None = None
    time_out: datetime | None = None


class AttendanceBulkRequest(BaseModel):
    session_id: int
    entries: list[AttendanceBulkEntry] = Field(min_length=1)


class AttendanceItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: int
    student_id: int
    status: str
    time_in: datetime | None = None
    time_out: datetime | None = None
    created_at: datetime
    updated_at: datetime


class AttendanceListResponse(BaseModel):
    session_id: int
    records: list[AttendanceItem]
