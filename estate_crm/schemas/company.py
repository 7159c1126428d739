"""
schemas/company.py
------------------
Company signup and read models.

CompanyPublic is what an anonymous caller sees when looking a company up by
alias (login screen); members get CompanyRead.
"""

from datetime import datetime

from pydantic import Field, field_validator

from estate_crm.schemas.common import CamelModel
from estate_crm.schemas.user import UserRead


class CompanySignup(CamelModel):
    name: str = Field(..., min_length=2, max_length=255, examples=["Nord Residence"])
    alias: str = Field(..., min_length=2, max_length=100, examples=["nord"])
    admin_username: str = Field(..., min_length=1, max_length=150)
    admin_password: str = Field(..., min_length=1, max_length=128)
    secret: str = Field(..., description="Shared company-creation secret")

    @field_validator("name", "admin_username")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("alias")
    @classmethod
    def normalize_alias(cls, v: str) -> str:
        return v.strip().lower()


class CompanyPublic(CamelModel):
    name: str
    alias: str


class CompanyRead(CompanyPublic):
    id: str
    created_at: datetime
    updated_at: datetime


class CompanySignupResponse(CamelModel):
    company: CompanyRead
    user: UserRead
    access_token: str
    token_type: str = "bearer"
    expires_in: int
