"""
services/auth_service.py
------------------------
Session handling: login, token issue/refresh, identity resolution and
password changes.

Identity resolution takes userId, username, companyAlias and role from the
verified token claims. It still looks the user up on every request: a deleted
user's token stops working immediately, and companyId always comes from the
stored row because the token does not carry it.
"""

from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.config import settings
from estate_crm.core.errors import AppError, InvalidArgument, Unauthenticated
from estate_crm.core.logging import get_logger
from estate_crm.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from estate_crm.core.tenancy import Identity
from estate_crm.models.user import User
from estate_crm.repositories.company_repo import CompanyRepository
from estate_crm.repositories.user_repo import UserRepository

logger = get_logger(__name__)


def validate_new_password(password: Optional[str]) -> str:
    if not password or len(password) < settings.MIN_PASSWORD_LENGTH:
        raise InvalidArgument(
            f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )
    return password


class AuthService:

    @staticmethod
    def issue_token(user: User) -> Tuple[str, int]:
        """Return (token, expires_in_seconds) for a verified user."""
        expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        token = create_access_token(
            user_id=user.id,
            username=user.username,
            company_alias=user.company_alias,
            role=user.role,
            expires_delta=expires,
        )
        return token, int(expires.total_seconds())

    @staticmethod
    def refresh_token(identity: Identity) -> Tuple[str, int]:
        """Re-issue a token for an already resolved caller; no password check."""
        expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        token = create_access_token(
            user_id=identity.user_id,
            username=identity.username,
            company_alias=identity.company_alias,
            role=identity.role,
            expires_delta=expires,
        )
        logger.info("Token refreshed", user_id=identity.user_id)
        return token, int(expires.total_seconds())

    @staticmethod
    async def resolve_identity(db: AsyncSession, token: Optional[str]) -> Identity:
        """
        Turn a bearer token into a verified Identity.

        Raises:
            Unauthenticated: no token, or the user no longer exists.
            InvalidToken / TokenExpired: see decode_access_token.
        """
        if not token:
            raise Unauthenticated("Access token required")

        payload = decode_access_token(token)
        user = (await UserRepository(db).get_by_id(payload["userId"])).unwrap()
        if user is None:
            logger.warning("User from valid token not found", user_id=payload["userId"])
            raise Unauthenticated("Invalid token - user not found")
        return Identity(
            user_id=payload["userId"],
            username=payload["username"],
            company_alias=payload["companyAlias"],
            company_id=user.company_id,
            role=payload["role"],
        )

    @staticmethod
    async def resolve_optional_identity(
        db: AsyncSession, token: Optional[str]
    ) -> Optional[Identity]:
        """Like resolve_identity, but any failure means an anonymous caller."""
        if not token:
            return None
        try:
            return await AuthService.resolve_identity(db, token)
        except AppError as exc:
            logger.debug("Optional authentication ignored", reason=exc.kind.value)
            return None

    @staticmethod
    async def authenticate(
        db: AsyncSession, username: str, company_alias: str, password: str
    ) -> User:
        company = (await CompanyRepository(db).get_by_alias(company_alias)).unwrap()
        if company is None:
            raise Unauthenticated("Invalid company alias")

        user = (
            await UserRepository(db).get_by_username_and_company(username, company.alias)
        ).unwrap()
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Login failed", company_alias=company.alias)
            raise Unauthenticated("Invalid credentials")

        logger.info("Login succeeded", user_id=user.id, company_id=user.company_id)
        return user

    @staticmethod
    async def change_password(
        db: AsyncSession, identity: Identity, current_password: str, new_password: str
    ) -> None:
        repo = UserRepository(db)
        user = (await repo.get_by_id(identity.user_id)).unwrap()
        if user is None:
            raise Unauthenticated("Invalid token - user not found")
        if not verify_password(current_password, user.password_hash):
            raise Unauthenticated("Current password is incorrect")
        validate_new_password(new_password)
        (await repo.set_password(user.id, hash_password(new_password))).unwrap()
