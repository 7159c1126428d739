"""Company repository: alias lookups and alias uniqueness."""

from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from estate_crm.core.errors import ErrorKind, Outcome
from estate_crm.models.company import Company, normalize_alias
from estate_crm.repositories import fields
from estate_crm.repositories.base import EntityRepository


class CompanyRepository(EntityRepository[Company]):
    model = Company
    label = "Company"
    # The alias is the tenant key copied onto every user row; it is fixed
    # at signup.
    field_coercers = {
        "name": fields.text(max_length=255),
    }
    unique_fields = ("alias",)

    async def create(self, data: Mapping[str, Any]) -> Outcome[Company]:
        values = dict(data)
        values["alias"] = normalize_alias(values.get("alias"))
        if not values["alias"]:
            return Outcome.failure(ErrorKind.INVALID_ARGUMENT, "Company alias is required")
        return await super().create(values)

    async def _find_conflict(
        self, values: Dict[str, Any], exclude_id: Optional[str] = None
    ) -> Optional[str]:
        stmt = select(Company.id).where(Company.alias == normalize_alias(values.get("alias")))
        if exclude_id is not None:
            stmt = stmt.where(Company.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        if result.scalar_one_or_none() is not None:
            return "Company alias already exists"
        return None

    async def get_by_alias(self, alias: Optional[str]) -> Outcome[Optional[Company]]:
        if not alias:
            return Outcome.success(None)
        try:
            result = await self.session.execute(
                select(Company).where(Company.alias == normalize_alias(alias))
            )
        except SQLAlchemyError as exc:
            return await self._store_failure("get_by_alias", exc)
        return Outcome.success(result.scalar_one_or_none())

    async def list_all(self) -> Outcome[List[Company]]:
        try:
            result = await self.session.execute(select(Company).order_by(Company.created_at))
        except SQLAlchemyError as exc:
            return await self._store_failure("list_all", exc)
        return Outcome.success(list(result.scalars().all()))
