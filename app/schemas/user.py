"""Schemas for accounts: sign-up, profile and administration."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import UserRole, UserStatus


class SignupRequest(BaseModel):
    """Self sign-up. The account waits in 'pending' until an admin approves it."""

    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: str = Field(default=UserRole.SSG_OFFICER)
    department: str | None = None
    position: str | None = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in UserRole.ALL:
            raise ValueError(f"role must be one of: {', '.join(UserRole.ALL)}")
        return v


class UserItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    full_name: str
    role: str
    role_label: str = ""
    status: str
    department: str | None = None
    position: str | None = None
    approved_by: int | None = None
    approved_at: datetime | None = None
    rejected_by: int | None = None
    rejected_at: datetime | None = None
    created_at: datetime


class UserListResponse(BaseModel):
    users: list[UserItem]


class ProfileUpdateRequest(BaseModel):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    department: str | None = None
    position: str | None = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class UserAdminUpdate(BaseModel):
    """Role/status change by an admin."""

    role: str | None = None
    status: str | None = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str | None) -> str | None:
        if v is not None and v not in UserRole.ALL:
            raise ValueError(f"role must be one of: {', '.join(UserRole.ALL)}")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str | None) -> str | None:
        if v is not None and v not in UserStatus.ALL:
            raise ValueError(f"status must be one of: {', '.join(UserStatus.ALL)}")
        return v


class ApprovalResponse(BaseModel):
    success: bool
    message: str
