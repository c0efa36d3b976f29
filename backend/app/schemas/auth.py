from typing import Optional

from pydantic import EmailStr, Field, validator

from app.schemas.common import CamelModel

USER_ROLES = ("brand", "influencer", "admin")


def _check_role(v):
    if v not in USER_ROLES:
        raise ValueError("Invalid role. Must be one of: brand, influencer, admin")
    return v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: str

    @validator("role")
    def validate_role(cls, v):
        return _check_role(v)


class LoginUser(CamelModel):
    id: str
    role: str
    name: Optional[str] = None
    email: str
    status: Optional[str] = None


class LoginData(CamelModel):
    user: LoginUser
    token: str


class TokenData(CamelModel):
    token: str


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, description="At least 6 characters")
    role: str

    @validator("role")
    def validate_role(cls, v):
        return _check_role(v)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
