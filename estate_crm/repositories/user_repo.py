"""User repository. Usernames are unique per company alias."""

from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from estate_crm.core.errors import ErrorKind, Outcome
from estate_crm.core.roles import Role
from estate_crm.core.logging import get_logger
from estate_crm.db.base import utcnow
from estate_crm.models.company import normalize_alias
from estate_crm.models.user import User
from estate_crm.repositories import fields
from estate_crm.repositories.base import EntityRepository

logger = get_logger(__name__)


class UserRepository(EntityRepository[User]):
    model = User
    label = "User"
    # Password changes go through set_password(); tenant binding never changes.
    immutable_fields = frozenset({"id", "created_at", "password_hash"})
    field_coercers = {
        "username": fields.text(max_length=150),
        "role": fields.choice(Role),
    }
    unique_fields = ("username", "company_alias")
    search_fields = ("username",)

    async def create(self, data: Mapping[str, Any]) -> Outcome[User]:
        values = dict(data)
        if "companyAlias" in values:
            values["company_alias"] = values.pop("companyAlias")
        values["company_alias"] = normalize_alias(values.get("company_alias"))
        if not values["company_alias"]:
            return Outcome.failure(ErrorKind.INVALID_ARGUMENT, "Company alias is required")
        return await super().create(values)

    async def _find_conflict(
        self, values: Dict[str, Any], exclude_id: Optional[str] = None
    ) -> Optional[str]:
        stmt = select(User.id).where(
            User.username == values.get("username"),
            User.company_alias == values.get("company_alias"),
        )
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        if result.scalar_one_or_none() is not None:
            return "Username already exists in this company"
        return None

    async def get_by_username_and_company(
        self, username: Optional[str], company_alias: Optional[str]
    ) -> Outcome[Optional[User]]:
        if not username or not company_alias:
            return Outcome.success(None)
        try:
            result = await self.session.execute(
                select(User).where(
                    User.username == username.strip(),
                    User.company_alias == normalize_alias(company_alias),
                )
            )
        except SQLAlchemyError as exc:
            return await self._store_failure("get_by_username_and_company", exc)
        return Outcome.success(result.scalar_one_or_none())

    async def list_by_company_alias(self, company_alias: str) -> Outcome[List[User]]:
        try:
            result = await self.session.execute(
                select(User)
                .where(User.company_alias == normalize_alias(company_alias))
                .order_by(User.created_at.desc(), User.id.desc())
            )
        except SQLAlchemyError as exc:
            return await self._store_failure("list_by_company_alias", exc)
        return Outcome.success(list(result.scalars().all()))

    async def set_password(self, user_id: str, password_hash: str) -> Outcome[User]:
        found = await self.get_by_id(user_id)
        if not found.ok:
            return found
        user = found.data
        if user is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, "User not found")

        user.password_hash = password_hash
        user.updated_at = utcnow()
        try:
            await self.session.flush()
        except IntegrityError as exc:
            return await self._integrity_failure("set_password", exc)
        except SQLAlchemyError as exc:
            return await self._store_failure("set_password", exc)

        logger.info("User password changed", entity_id=user.id)
        return Outcome.success(user)
