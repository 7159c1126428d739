"""
api/routes/companies.py
-----------------------
Company signup and lookup.

POST   /companies          — Public signup guarded by the creation secret.
GET    /companies/{alias}  — Anonymous callers get name + alias; members get the full record.
DELETE /companies/{id}     — Company admin removes the company and everything it owns.
"""

from typing import Union

from fastapi import APIRouter, status

from estate_crm.dependencies import DbSession, OptionalUser, TenantUser
from estate_crm.schemas.common import MessageResponse
from estate_crm.schemas.company import (
    CompanyPublic,
    CompanyRead,
    CompanySignup,
    CompanySignupResponse,
)
from estate_crm.schemas.user import UserRead
from estate_crm.services.auth_service import AuthService
from estate_crm.services.company_service import CompanyService

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.post(
    "",
    response_model=CompanySignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a company with its first admin",
)
async def create_company(body: CompanySignup, db: DbSession) -> CompanySignupResponse:
    company, user = await CompanyService.signup(db, body)
    token, expires_in = AuthService.issue_token(user)
    return CompanySignupResponse(
        company=CompanyRead.model_validate(company),
        user=UserRead.model_validate(user),
        access_token=token,
        expires_in=expires_in,
    )


@router.get(
    "/{alias}",
    response_model=Union[CompanyRead, CompanyPublic],
    summary="Look a company up by alias",
)
async def get_company(alias: str, db: DbSession, identity: OptionalUser):
    company = await CompanyService.get_by_alias(db, alias)
    if identity is not None and identity.company_id == company.id:
        return CompanyRead.model_validate(company)
    return CompanyPublic.model_validate(company)


@router.delete("/{company_id}", response_model=MessageResponse, summary="Delete a company")
async def delete_company(company_id: str, identity: TenantUser, db: DbSession) -> MessageResponse:
    await CompanyService.delete_company(db, identity, company_id)
    return MessageResponse(message="Company deleted successfully")
