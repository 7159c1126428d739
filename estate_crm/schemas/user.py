"""
schemas/user.py
---------------
Pydantic models for users, login and tokens.

Security note:
  - password_hash is NEVER included in any response schema.
  - Password length is checked in the service layer against
    MIN_PASSWORD_LENGTH so the rule lives in one place.
"""

from datetime import datetime

from pydantic import Field

from estate_crm.core.roles import Role
from estate_crm.schemas.common import CamelModel


class UserCreate(CamelModel):
    """Used by a manager to add a user to their own company."""
    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., max_length=128)
    role: str = Field(default=Role.user.value, examples=["User", "PowerUser"])


class UserRead(CamelModel):
    id: str
    username: str
    company_alias: str
    company_id: str
    role: str
    created_at: datetime
    updated_at: datetime


class PasswordReset(CamelModel):
    new_password: str = Field(..., max_length=128)


class LoginRequest(CamelModel):
    username: str
    password: str
    company_alias: str


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(..., max_length=128)


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserRead
