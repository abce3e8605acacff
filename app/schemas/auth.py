"""
Pydantic schemas for authentication endpoints.
"""
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.db.models.user import ROLE_EMPLOYEE, ROLE_EMPLOYER, ROLE_EMPLOYER_ADMIN

SIGNUP_ROLES = (ROLE_EMPLOYEE, ROLE_EMPLOYER, ROLE_EMPLOYER_ADMIN)


class SignupRequest(BaseModel):
    """Request schema for user signup."""
    full_name: str = Field(..., min_length=1, max_length=200, description="User's full name")
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, description="User's password (min 8 characters)")
    role: str = Field(default=ROLE_EMPLOYEE, description="employee | employer | employer_admin")
    phone: Optional[str] = Field(default=None, max_length=20)
    company_name: Optional[str] = Field(default=None, max_length=255, description="Employers only")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """Validate password length in bytes (bcrypt limit is 72 bytes)."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password too long (bcrypt limit 72 bytes)")
        return v

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in SIGNUP_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(SIGNUP_ROLES)}")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "full_name": "John Doe",
                "email": "john.doe@example.com",
                "password": "SecurePass123",
                "role": "employer",
                "company_name": "Acme Corp"
            }
        }


class SignupResponse(BaseModel):
    message: str
    user_id: int
    role: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
