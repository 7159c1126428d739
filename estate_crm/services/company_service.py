"""
services/company_service.py
---------------------------
Company signup, lookup and deletion.

Signup is public but gated by COMPANY_CREATION_SECRET. It creates the
company and its first admin user; if the user cannot be created the company
row is removed again so a half-made tenant is never left behind.
"""

import hmac
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.config import settings
from estate_crm.core.errors import Forbidden, NotFound, Unauthenticated
from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Role
from estate_crm.core.security import hash_password
from estate_crm.core.tenancy import Identity
from estate_crm.models.company import Company
from estate_crm.models.user import User
from estate_crm.repositories.apartment_repo import ApartmentRepository
from estate_crm.repositories.company_repo import CompanyRepository
from estate_crm.repositories.lead_repo import LeadRepository
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.schemas.company import CompanySignup
from estate_crm.services.auth_service import validate_new_password

logger = get_logger(__name__)


class CompanyService:

    @staticmethod
    def check_creation_secret(secret: str) -> None:
        expected = settings.COMPANY_CREATION_SECRET
        if not expected:
            raise Forbidden("Company creation is not configured")
        if not hmac.compare_digest(secret.encode(), expected.encode()):
            logger.warning("Company signup rejected: bad secret")
            raise Unauthenticated("Invalid secret for company creation")

    @staticmethod
    async def signup(db: AsyncSession, data: CompanySignup) -> Tuple[Company, User]:
        CompanyService.check_creation_secret(data.secret)
        validate_new_password(data.admin_password)

        companies = CompanyRepository(db)
        company = (await companies.create({"name": data.name, "alias": data.alias})).unwrap()

        created = await UserRepository(db).create(
            {
                "username": data.admin_username,
                "password_hash": hash_password(data.admin_password),
                "company_alias": company.alias,
                "company_id": company.id,
                "role": Role.admin.value,
            }
        )
        if not created.ok:
            logger.warning(
                "Admin user creation failed, removing company",
                company_id=company.id,
                reason=created.message,
            )
            await companies.delete(company.id)
        user = created.unwrap()

        logger.info("Company created", company_id=company.id, alias=company.alias)
        return company, user

    @staticmethod
    async def get_by_alias(db: AsyncSession, alias: str) -> Company:
        company = (await CompanyRepository(db).get_by_alias(alias)).unwrap()
        if company is None:
            raise NotFound("Company not found")
        return company

    @staticmethod
    async def list_companies(db: AsyncSession) -> List[Company]:
        return (await CompanyRepository(db).list_all()).unwrap()

    @staticmethod
    async def delete_company(db: AsyncSession, identity: Identity, company_id: str) -> None:
        """
        Remove a company with everything it owns. Only an admin of that
        company may do this; users are removed before the company row.
        """
        if identity.company_id != company_id:
            raise Forbidden("Access denied")
        if identity.role != Role.admin.value:
            raise Forbidden("Only company admins can delete the company")

        for repo in (ApartmentRepository(db), LeadRepository(db), PropertyRepository(db)):
            for entity in (await repo.scan_tenant(company_id)).unwrap():
                (await repo.delete(entity.id)).unwrap()

        users = UserRepository(db)
        for user in (await users.list_by_company_alias(identity.company_alias)).unwrap():
            (await users.delete(user.id)).unwrap()

        (await CompanyRepository(db).delete(company_id)).unwrap()
        logger.info("Company deleted", company_id=company_id, by=identity.user_id)
