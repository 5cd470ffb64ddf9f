"""Schemas for authentication and JWT."""
from pydantic import BaseModel, EmailStr, Field, field_validator


class LoginRequest(BaseModel):
    """Body of the login endpoint."""

    email: EmailStr = Field(description="Account email", examples=["admin@school.edu"])
    password: str = Field(description="Plain-text password", min_length=1)


class TokenResponse(BaseModel):
    """JWT access token plus the role of the authenticated user."""

    access_token: str = Field(description="Send as header Authorization: Bearer <token>")
    token_type: str = Field(default="bearer", description="Always 'bearer'")
    role: str = Field(description="Role of the authenticated user")


class TokenPayload(BaseModel):
    """Claims carried inside the JWT."""
    sub: str
    email: str | None = None
    role: str | None = None

    @field_validator("sub")
    @classmethod
    def numeric_subject(cls, v: str) -> str:
        if not v.isdigit():
            raise ValueError("sub must be a user id")
        return v

    @property
    def user_id(self) -> int:
        return int(self.sub)
