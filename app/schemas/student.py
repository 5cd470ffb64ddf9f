"""Schemas for students, the student directory and Excel/CSV import."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class StudentBase(BaseModel):
    student_id: str = Field(min_length=1, description="School ID (unique)", examples=["2024-0001"])
    surname: str = Field(min_length=1, examples=["Dela Cruz"])
    firstname: str = Field(min_length=1, examples=["Juan"])
    middle_initial: str | None = Field(default=None, max_length=5)
    program: str = Field(min_length=1, description="Program code", examples=["BSIT"])
    year: str = Field(min_length=1, description="Year level without the ' Year' suffix", examples=["1st"])
    section: str = Field(min_length=1, examples=["BSIT 1A"])
    email: EmailStr | None = None
    contact_no: str | None = None

    @field_validator("student_id", "surname", "firstname", "program", "year", "section")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class StudentCreate(StudentBase):
    """Body for creating a student."""


class StudentUpdate(BaseModel):
    """Partial update; only fields sent are changed."""

    student_id: str | None = Field(default=None, min_length=1)
    surname: str | None = Field(default=None, min_length=1)
    firstname: str | None = Field(default=None, min_length=1)
    middle_initial: str | None = None
    program: str | None = Field(default=None, min_length=1)
    year: str | None = Field(default=None, min_length=1)
    section: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None
    contact_no: str | None = None
    signature_url: str | None = None


class StudentItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: str
    surname: str
    firstname: str
    middle_initial: str | None = None
    full_name: str
    program: str
    year: str
    section: str
    email: str | None = None
    contact_no: str | None = None
    signature_url: str | None = None
    primary_signature_id: int | None = None
    created_at: datetime
    updated_at: datetime


class StudentListResponse(BaseModel):
    total: int = Field(description="Students matching the filters before paging")
    page: int
    page_size: int
    students: list[StudentItem]


class StudentFilterOptions(BaseModel):
    """Distinct values for the directory filters."""

    programs: list[str]
    years: list[str]
    sections: list[str]


class ImportErrorItem(BaseModel):
    row: int = Field(description="Spreadsheet row number (header is row 1)")
    student_id: str | None = None
    error: str


class ImportSummary(BaseModel):
    total_rows: int
    inserted: int
    skipped_empty: int
    errors: int


class StudentImportResponse(BaseModel):
    """Outcome of a student import."""

    message: str
    summary: ImportSummary
    errors: list[ImportErrorItem]
