"""Schemas for signatures and the external verification service."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SignatureItem(BaseModel):
    """Signature metadata row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    storage_path: str
    file_name: str
    file_size: int
    file_type: str
    width: int | None = None
    height: int | None = None
    features: dict[str, Any] | None = None
    quality_score: float | None = None
    device_info: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class SignatureUploadResponse(BaseModel):
    url: str = Field(description="Public URL of the stored image")
    signature: SignatureItem


class SignatureMatchResponse(BaseModel):
    signature: SignatureItem = Field(description="The newly uploaded signature")
    score: float = Field(description="Best similarity against the student's other signatures (0-1)")
    is_match: bool = Field(description="score >= threshold")


class SignatureCompareResponse(BaseModel):
    sig1_id: int
    sig2_id: int
    score: float


class StudentSignatureSummary(BaseModel):
    """One row of the student signature overview."""

    student_id: int = Field(description="Internal student id")
    school_id: str = Field(description="Student business id")
    full_name: str
    program: str
    year: str
    section: str
    signature_count: int
    primary_signature_id: int | None = None
    primary_signature_url: str | None = None


class PredictedStudent(BaseModel):
    id: int
    student_id: str
    firstname: str
    surname: str


class VerificationResponse(BaseModel):
    """Verdict returned by the verification service."""

    success: bool
    match: bool = False
    predicted_student_id: int | None = None
    predicted_student: PredictedStudent | None = None
    score: float = 0.0
    decision: str = "no_match"
    message: str = ""
    error: str | None = None


class TrainingProfile(BaseModel):
    student_id: int
    status: str
    num_samples: int = 0
    threshold: float | None = None
    last_trained_at: datetime | None = None
    error_message: str | None = None


class TrainingResponse(BaseModel):
    success: bool
    message: str = ""
    profile: TrainingProfile | None = None
    error: str | None = None


class VerifyAttendanceResponse(BaseModel):
    """Verification verdict plus the attendance row written for a match."""

    verification: VerificationResponse
    attendance_id: int | None = Field(default=None, description="Set when the match was recorded as present")
