"""Pydantic models for API request/response."""

from datetime import datetime
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator

from domain.model.user import Role, User, VerificationState


class _CamelRequest(BaseModel):
    """Request bodies arrive in camelCase from the frontend."""
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(_CamelRequest):
    """Request model for account registration."""
    full_name: str = Field(..., alias="fullName", min_length=1, max_length=200)
    email: str
    job_title: Optional[str] = Field(None, alias="jobTitle", max_length=200)
    organization: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=200)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_must_be_valid(cls, value: str) -> str:
        """Check the address format but keep it exactly as typed; it is the login key."""
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(str(e)) from e
        return value


class LoginRequest(BaseModel):
    """Request model for login."""
    email: str
    password: str


class VerifyEmailRequest(BaseModel):
    """Request model for email verification."""
    token: str = Field(..., min_length=1, max_length=256)


class ResendVerificationRequest(BaseModel):
    """Request model for resending the verification email."""
    email: str = Field(..., min_length=1)


class UpdateProfileRequest(_CamelRequest):
    """Partial profile update. Omitted fields are left unchanged."""
    full_name: Optional[str] = Field(None, alias="fullName", max_length=200)
    job_title: Optional[str] = Field(None, alias="jobTitle", max_length=200)
    organization: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=200)
    password: Optional[str] = None


class AdminUpdateUserRequest(BaseModel):
    """Admin update: role change and/or password reset."""
    role: Optional[Role] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """Public representation of an account. Never carries the password hash or token."""
    id: str
    email: str
    full_name: Optional[str] = None
    job_title: Optional[str] = None
    organization: Optional[str] = None
    city: Optional[str] = None
    role: Role
    verification_state: VerificationState
    registered_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            job_title=user.job_title,
            organization=user.organization,
            city=user.city,
            role=user.role,
            verification_state=user.verification_state,
            registered_at=user.registered_at,
            updated_at=user.updated_at,
        )


class LoginResponse(BaseModel):
    """Response model for login."""
    user: UserResponse


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
