"""Schemas for sessions and their rosters."""
from datetime import date as date_type, datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.session import SessionType


class SessionBase(BaseModel):
    title: str = Field(min_length=1, examples=["General Assembly"])
    type: str = Field(default=SessionType.CLASS, description="class, event or other")
    date: date_type
    time_in: time | None = None
    time_out: time | None = None
    program: str = Field(default="All Programs", description="Program or 'All Programs'")
    year: str = Field(default="All Year Levels", description="Year level ('1st Year') or 'All Year Levels'")
    section: str = Field(default="All Sections", description="Section or 'All Sections'")
    description: str | None = None
    capacity: int | None = Field(default=None, ge=0)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in SessionType.ALL:
            raise ValueError(f"type must be one of: {', '.join(SessionType.ALL)}")
        return v

    @model_validator(mode="after")
    def check_times(self):
        if self.time_in and self.time_out and self.time_out <= self.time_in:
            raise ValueError("time_out must be after time_in")
        return self


class SessionCreate(SessionBase):
    pass


class SessionUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    type: str | None = None
    date: date_type | None = None
    time_in: time | None = None
    time_out: time | None = None
    program: str | None = None
    year: str | None = None
    section: str | None = None
    description: str | None = None
    capacity: int | None = Field(default=None, ge=0)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str | None) -> str | None:
        if v is not None and v not in SessionType.ALL:
            raise ValueError(f"type must be one of: {', '.join(SessionType.ALL)}")
        return v


class SessionItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    type: str
    date: date_type
    time_in: time | None = None
    time_out: time | None = None
    program: str
    year: str
    section: str
    description: str | None = None
    capacity: int | None = None
    created_by_user_id: int | None = None
    created_at: datetime
    updated_at: datetime
    expected_count: int | None = Field(default=None, description="Students on the session roster")


class SessionListResponse(BaseModel):
    sessions: list[SessionItem]


class RosterStudent(BaseModel):
    """A roster row: the student plus their attendance for the session, if any."""

    id: int
    student_id: str
    surname: str
    firstname: str
    middle_initial: str | None = None
    program: str
    year: str
    section: str
    signature_url: str | None = None
    status: str | None = None
    time_in: datetime | None = None
    time_out: datetime | None = None


class SessionRosterResponse(BaseModel):
    session: SessionItem
    students: list[RosterStudent]
    count: int
