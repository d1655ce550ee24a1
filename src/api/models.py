"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Shape validation lives here: the domain receives already-validated input.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, model_validator

from src.domain.ports import User

CODE_PATTERN = r"^\d{6}$"


class Metadata(BaseModel):
    """Outcome metadata carried by every successful response."""

    status: str = "success"
    code: str = "0"
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str


class StatusResponse(BaseModel):
    """Response carrying only metadata."""

    metadata: Metadata


# Registration


class RegisterGhostRequest(BaseModel):
    """Request model for starting a ghost registration."""

    username: str = Field(..., min_length=2, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=6, description="User password (min 6 characters)")


class RegisterGhostResponse(BaseModel):
    """Response model for a started registration."""

    metadata: Metadata
    register_token: str
    expires_in_seconds: int


class RegisterRequest(BaseModel):
    """Request model for finishing a registration."""

    register_token: str = Field(..., min_length=1)
    verification_code: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=CODE_PATTERN,
        description="6-digit verification code",
    )


# Sessions


class SessionResponse(BaseModel):
    """Response model carrying an access + refresh token pair."""

    metadata: Metadata
    access_token: str
    refresh_token: str


class LoginRequest(BaseModel):
    email_or_username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    access_token: str = Field(..., min_length=1)


# Password reset


class ForgotPasswordRequest(BaseModel):
    email_or_username: str = Field(..., min_length=1)


class ForgotPasswordVerifyRequest(BaseModel):
    verification_token: str = Field(..., min_length=1)
    code: str = Field(..., min_length=6, max_length=6, pattern=CODE_PATTERN)


class VerificationTokenResponse(BaseModel):
    metadata: Metadata
    verification_token: str


class ResetPasswordRequest(BaseModel):
    """Request model for the final password reset step."""

    verification_token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., min_length=6)

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


# Email verification


class EmailVerifyStartRequest(BaseModel):
    email: EmailStr


class EmailVerifyFinishRequest(BaseModel):
    verification_token: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)


# Users


class UserCreateRequest(BaseModel):
    username: str = Field(..., min_length=2, max_length=64)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserUpdateRequest(BaseModel):
    username: str | None = Field(None, min_length=2, max_length=64)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=6)


class UserResponse(BaseModel):
    """Public view of a user. Never includes the password hash."""

    id: str
    username: str
    email: str
    email_verified: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            email_verified=user.email_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserEnvelope(BaseModel):
    metadata: Metadata
    user: UserResponse


class PaginationMetadata(BaseModel):
    page_items: int
    current_page: int
    total_pages: int
    total_items: int


class UserPageResponse(BaseModel):
    metadata: Metadata
    users: list[UserResponse]
    pagination_metadata: PaginationMetadata
