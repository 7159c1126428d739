"""
services/user_service.py
------------------------
User management inside one company.

Rules:
  - Listing, creating and deleting users needs manage_users.
  - A manager may only act on users ranked strictly below them, and may
    only hand out roles ranked strictly below their own (admins excepted).
  - Any user may read and rename themselves; nothing else about their own
    account is self-service except the password (see AuthService).
  - Self-deletion is refused.
"""

from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.errors import Forbidden
from estate_crm.core.logging import get_logger
from estate_crm.core.roles import Capability, can_modify_user_role, parse_role
from estate_crm.core.security import hash_password
from estate_crm.core.tenancy import Identity, ensure_capability, ensure_tenant_access
from estate_crm.models.user import User
from estate_crm.repositories.base import field_name
from estate_crm.repositories.user_repo import UserRepository
from estate_crm.schemas.user import UserCreate
from estate_crm.services.auth_service import validate_new_password

logger = get_logger(__name__)

_SELF_EDITABLE = {"username"}


class UserService:

    @staticmethod
    async def list_users(db: AsyncSession, identity: Identity) -> List[User]:
        ensure_capability(identity, Capability.manage_users)
        return (await UserRepository(db).list_by_company_alias(identity.company_alias)).unwrap()

    @staticmethod
    async def create_user(db: AsyncSession, identity: Identity, data: UserCreate) -> User:
        ensure_capability(identity, Capability.manage_users)
        role = parse_role(data.role)
        if not can_modify_user_role(identity.role, role):
            raise Forbidden("Cannot create a user with an equal or higher role")
        validate_new_password(data.password)

        user = (
            await UserRepository(db).create(
                {
                    "username": data.username,
                    "password_hash": hash_password(data.password),
                    "company_alias": identity.company_alias,
                    "company_id": identity.company_id,
                    "role": role.value,
                }
            )
        ).unwrap()
        logger.info("User created", user_id=user.id, role=user.role, by=identity.user_id)
        return user

    @staticmethod
    async def get_user(db: AsyncSession, identity: Identity, user_id: str) -> User:
        if user_id != identity.user_id:
            ensure_capability(identity, Capability.manage_users)
        user = (await UserRepository(db).get_by_id(user_id)).unwrap()
        return ensure_tenant_access(identity, user, "User")

    @staticmethod
    async def update_user(
        db: AsyncSession, identity: Identity, user_id: str, fields: Dict[str, Any]
    ) -> User:
        changes = dict(fields)
        if user_id == identity.user_id:
            requested = {field_name(key) for key in changes} - UserRepository.immutable_fields
            if requested - _SELF_EDITABLE:
                raise Forbidden("You can only change your own username")
        else:
            ensure_capability(identity, Capability.manage_users)

        user = await UserService.get_user(db, identity, user_id)

        if user_id != identity.user_id:
            if not can_modify_user_role(identity.role, user.role):
                raise Forbidden("Cannot modify a user with an equal or higher role")
            for key in [key for key in changes if field_name(key) == "role"]:
                new_role = parse_role(changes.pop(key))
                if not can_modify_user_role(identity.role, new_role):
                    raise Forbidden("Cannot assign an equal or higher role")
                changes["role"] = new_role.value

        return (await UserRepository(db).patch(user_id, changes)).unwrap()

    @staticmethod
    async def reset_password(
        db: AsyncSession, identity: Identity, user_id: str, new_password: str
    ) -> None:
        ensure_capability(identity, Capability.change_passwords)
        user = (await UserRepository(db).get_by_id(user_id)).unwrap()
        user = ensure_tenant_access(identity, user, "User")
        if user.id != identity.user_id and not can_modify_user_role(identity.role, user.role):
            raise Forbidden("Cannot change the password of a user with an equal or higher role")
        validate_new_password(new_password)
        (await UserRepository(db).set_password(user.id, hash_password(new_password))).unwrap()
        logger.info("Password reset", user_id=user.id, by=identity.user_id)

    @staticmethod
    async def delete_user(db: AsyncSession, identity: Identity, user_id: str) -> None:
        if user_id == identity.user_id:
            raise Forbidden("Cannot delete your own account")
        ensure_capability(identity, Capability.manage_users)
        user = (await UserRepository(db).get_by_id(user_id)).unwrap()
        user = ensure_tenant_access(identity, user, "User")
        if not can_modify_user_role(identity.role, user.role):
            raise Forbidden("Cannot delete a user with an equal or higher role")
        (await UserRepository(db).delete(user.id)).unwrap()
        logger.info("User deleted", user_id=user.id, by=identity.user_id)
