"""Schemas for academic years, semesters and allowed terms."""
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _DateRange(BaseModel):
    @model_validator(mode="after")
    def check_dates(self):
        start = getattr(self, "start_date", None)
        end = getattr(self, "end_date", None)
        if start and end and end <= start:
            raise ValueError("end_date must be after start_date")
        return self


class AcademicYearCreate(_DateRange):
    name: str = Field(min_length=1, examples=["2025-2026"])
    start_date: date
    end_date: date
    description: str | None = None


class AcademicYearUpdate(_DateRange):
    name: str | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None


class SemesterCreate(_DateRange):
    name: str = Field(min_length=1, examples=["First Semester"])
    start_date: date
    end_date: date
    description: str | None = None


class SemesterUpdate(_DateRange):
    name: str | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None


class SemesterItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    academic_year_id: int
    name: str
    start_date: date
    end_date: date
    is_active: bool
    description: str | None = None


class AcademicYearItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_date: date
    end_date: date
    is_active: bool
    description: str | None = None
    semesters: list[SemesterItem] = []


class AcademicYearListResponse(BaseModel):
    academic_years: list[AcademicYearItem]


class AllowedTermCreate(_DateRange):
    academic_year: str = Field(min_length=1, examples=["2024-2025"])
    semester: str = Field(min_length=1, examples=["First Semester"])
    start_date: date
    end_date: date

    @field_validator("academic_year", "semester")
    @classmethod
    def strip_label(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class AllowedTermItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    academic_year: str
    semester: str
    start_date: date
    end_date: date
    created_at: datetime


class AllowedTermListResponse(BaseModel):
    total: int
    terms: list[AllowedTermItem]
