"""Auth domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_email

MIN_PASSWORD_LENGTH = 6


class LoginRequest(BaseModel):
    """Schema for admin login"""

    email: str
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    rememberMe: bool = False

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(v)


class ChangePasswordRequest(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    confirmPassword: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.confirmPassword != self.newPassword:
            raise ValueError("Password confirmation does not match")
        return self


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class AdminUserResponse(BaseModel):
    """Admin user as exposed to the admin panel"""

    id: int
    email: str
    firstName: str
    lastName: str
    role: str
    lastLogin: Optional[datetime] = None


class AdminUserListItem(AdminUserResponse):
    isActive: bool
    createdAt: Optional[datetime] = None


class ProfileResponse(AdminUserResponse):
    createdAt: Optional[datetime] = None
    passwordChangedAt: Optional[datetime] = None


class LoginData(BaseModel):
    token: str
    user: AdminUserResponse
    expiresIn: str


class VerifyData(BaseModel):
    user: AdminUserResponse
    tokenExp: int


class ProfileData(BaseModel):
    user: ProfileResponse
