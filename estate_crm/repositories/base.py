"""
repositories/base.py
--------------------
Generic entity store adapter shared by every entity kind.

Contract:
  - Every public coroutine returns an Outcome. SQLAlchemy exceptions are
    caught here and never escape: a unique-constraint violation becomes
    Conflict, anything else StoreError (logged with the driver message,
    reported to the caller as a generic message).
  - Repositories flush but never commit; the request-scoped session in
    db/session.py owns the transaction.
  - patch() goes through an explicit per-entity allow-list (field_coercers).
    id / created_at (and any field listed in immutable_fields) are dropped
    silently, names outside the allow-list are rejected.
  - No optimistic locking: two concurrent patches on one row resolve
    last-writer-wins per attribute.
"""

import re
from typing import Any, Callable, ClassVar, Dict, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.config import settings
from estate_crm.core.errors import ErrorKind, Outcome, Page
from estate_crm.core.logging import get_logger
from estate_crm.core.text import contains_normalized
from estate_crm.db.base import Base, generate_uuid, utcnow
from estate_crm.repositories.fields import Coercer
from estate_crm.repositories.pagination import decode_cursor, encode_cursor

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

RelationFilter = Callable[[Select, Any], Select]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def field_name(key: str) -> str:
    """Accept both the JSON spelling (createdAt) and the attribute name."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class EntityRepository(Generic[ModelT]):
    model: ClassVar[Type[Base]]
    label: ClassVar[str] = "Entity"

    # Attributes that the generic patch path silently refuses to touch.
    immutable_fields: ClassVar[frozenset] = frozenset({"id", "created_at"})
    # Patch allow-list: attribute name -> coercer.
    field_coercers: ClassVar[Dict[str, Coercer]] = {}
    # Fields matched by search(); compared with contains_normalized.
    search_fields: ClassVar[Tuple[str, ...]] = ()
    # Named relation lookups usable with get_by_foreign_key().
    relation_filters: ClassVar[Dict[str, RelationFilter]] = {}
    # Attributes whose combined value must stay unique (see _find_conflict).
    unique_fields: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Create / read ────────────────────────────────────────────────────────

    async def create(self, data: Mapping[str, Any]) -> Outcome[ModelT]:
        values = {field_name(key): value for key, value in data.items()}
        if not values.get("id"):
            values["id"] = generate_uuid()
        now = utcnow()
        values["created_at"] = now
        values["updated_at"] = now

        for name, value in list(values.items()):
            coercer = self.field_coercers.get(name)
            if coercer is None:
                continue
            try:
                values[name] = coercer(value)
            except (KeyError, TypeError, ValueError) as exc:
                return Outcome.failure(
                    ErrorKind.INVALID_ARGUMENT, f"Invalid value for '{name}': {exc}"
                )

        try:
            conflict = await self._find_conflict(values)
        except SQLAlchemyError as exc:
            return await self._store_failure("create", exc)
        if conflict:
            return Outcome.failure(ErrorKind.CONFLICT, conflict)

        try:
            entity = self.build(values)
        except (TypeError, ValueError) as exc:
            return Outcome.failure(ErrorKind.INVALID_ARGUMENT, str(exc))

        self.session.add(entity)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            return await self._integrity_failure("create", exc)
        except SQLAlchemyError as exc:
            return await self._store_failure("create", exc)

        logger.info(f"{self.label} created", entity_id=entity.id)
        return Outcome.success(entity)

    def build(self, values: Dict[str, Any]) -> ModelT:
        """Instantiate the ORM object. Unknown keys raise TypeError."""
        return self.model(**values)

    async def get_by_id(self, entity_id: Optional[str]) -> Outcome[Optional[ModelT]]:
        if not entity_id:
            return Outcome.success(None)
        try:
            entity = await self.session.get(self.model, entity_id)
        except SQLAlchemyError as exc:
            return await self._store_failure("get_by_id", exc)
        return Outcome.success(entity)

    async def get_by_tenant(
        self,
        company_id: str,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Outcome[Page[ModelT]]:
        stmt = select(self.model).where(self.model.company_id == company_id)
        return await self._paginate(stmt, page_size, cursor)

    async def get_by_foreign_key(
        self,
        relation: str,
        value: Any,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
        company_id: Optional[str] = None,
    ) -> Outcome[Page[ModelT]]:
        relation_filter = self.relation_filters.get(relation)
        if relation_filter is None:
            return Outcome.failure(
                ErrorKind.INVALID_ARGUMENT, f"Unknown relation '{relation}' for {self.label}"
            )
        stmt = relation_filter(select(self.model), value)
        if company_id is not None:
            stmt = stmt.where(self.model.company_id == company_id)
        return await self._paginate(stmt, page_size, cursor)

    async def scan_tenant(self, company_id: str) -> Outcome[List[ModelT]]:
        """Every entity of one tenant, newest first. Bounded by tenant size."""
        stmt = (
            select(self.model)
            .where(self.model.company_id == company_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            return await self._store_failure("scan_tenant", exc)
        return Outcome.success(list(result.scalars().all()))

    async def search(self, company_id: str, term: str) -> Outcome[List[ModelT]]:
        scanned = await self.scan_tenant(company_id)
        if not scanned.ok:
            return scanned
        matches = [
            entity
            for entity in scanned.data
            if any(
                contains_normalized(getattr(entity, name, None), term)
                for name in self.search_fields
            )
        ]
        return Outcome.success(matches)

    # ── Patch / delete ───────────────────────────────────────────────────────

    async def patch(self, entity_id: str, fields: Mapping[str, Any]) -> Outcome[ModelT]:
        requested: Dict[str, Any] = {}
        unknown: List[str] = []
        for key, value in fields.items():
            name = field_name(key)
            if name in self.immutable_fields:
                continue
            if name not in self.field_coercers:
                unknown.append(key)
                continue
            requested[name] = value

        if unknown:
            return Outcome.failure(
                ErrorKind.INVALID_ARGUMENT, f"Unknown field(s): {', '.join(sorted(unknown))}"
            )
        if not requested:
            return Outcome.failure(ErrorKind.INVALID_ARGUMENT, "No valid fields to update")

        # Validate everything before touching the entity so a bad value never
        # leaves a half-applied, dirty object in the session.
        updates: Dict[str, Any] = {}
        for name, value in requested.items():
            try:
                updates[name] = self.field_coercers[name](value)
            except (KeyError, TypeError, ValueError) as exc:
                return Outcome.failure(
                    ErrorKind.INVALID_ARGUMENT, f"Invalid value for '{name}': {exc}"
                )

        found = await self.get_by_id(entity_id)
        if not found.ok:
            return found
        entity = found.data
        if entity is None:
            return Outcome.failure(ErrorKind.NOT_FOUND, f"{self.label} not found")

        try:
            conflict = await self._find_conflict(
                {**self._current_values(entity), **updates}, exclude_id=entity.id
            )
        except SQLAlchemyError as exc:
            return await self._store_failure("patch", exc)
        if conflict:
            return Outcome.failure(ErrorKind.CONFLICT, conflict)

        # Declaration order of field_coercers, not request order.
        for name in self.field_coercers:
            if name in updates:
                self.assign(entity, name, updates[name])
        entity.updated_at = utcnow()

        try:
            await self.session.flush()
        except IntegrityError as exc:
            return await self._integrity_failure("patch", exc)
        except SQLAlchemyError as exc:
            return await self._store_failure("patch", exc)

        logger.info(f"{self.label} updated", entity_id=entity.id, fields=sorted(updates))
        return Outcome.success(entity)

    def assign(self, entity: ModelT, name: str, value: Any) -> None:
        setattr(entity, name, value)

    async def delete(self, entity_id: str) -> Outcome[None]:
        """Idempotent: deleting a missing row is a success."""
        try:
            entity = await self.session.get(self.model, entity_id)
            if entity is not None:
                await self.session.delete(entity)
                await self.session.flush()
        except SQLAlchemyError as exc:
            return await self._store_failure("delete", exc)
        logger.info(f"{self.label} deleted", entity_id=entity_id)
        return Outcome.success(None)

    # ── Uniqueness hooks ─────────────────────────────────────────────────────

    def _current_values(self, entity: ModelT) -> Dict[str, Any]:
        return {name: getattr(entity, name) for name in self.unique_fields}

    async def _find_conflict(
        self, values: Dict[str, Any], exclude_id: Optional[str] = None
    ) -> Optional[str]:
        """Return a conflict message if ``values`` would break a unique constraint."""
        return None

    # ── Internals ────────────────────────────────────────────────────────────

    def _page_size(self, page_size: Optional[int]) -> int:
        if not page_size or page_size < 1:
            return settings.DEFAULT_PAGE_SIZE
        return min(page_size, settings.MAX_PAGE_SIZE)

    async def _paginate(
        self, stmt: Select, page_size: Optional[int], cursor: Optional[str]
    ) -> Outcome[Page[ModelT]]:
        size = self._page_size(page_size)
        try:
            position = decode_cursor(cursor)
        except ValueError:
            return Outcome.failure(ErrorKind.INVALID_ARGUMENT, "Invalid pagination cursor")

        created_at, entity_id = self.model.created_at, self.model.id
        if position is not None:
            stmt = stmt.where(
                or_(
                    created_at < position.created_at,
                    and_(created_at == position.created_at, entity_id < position.id),
                )
            )
        stmt = stmt.order_by(created_at.desc(), entity_id.desc()).limit(size + 1)

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            return await self._store_failure("paginate", exc)

        rows = list(result.scalars().all())
        has_more = len(rows) > size
        items = rows[:size]
        return Outcome.success(
            Page(
                items=items,
                cursor=encode_cursor(items[-1]) if has_more else None,
                has_more=has_more,
            )
        )

    async def _integrity_failure(self, operation: str, exc: IntegrityError) -> Outcome:
        await self.session.rollback()
        if is_unique_violation(exc):
            logger.info(f"{self.label} uniqueness violation", operation=operation)
            return Outcome.failure(ErrorKind.CONFLICT, f"{self.label} already exists")
        return await self._store_failure(operation, exc, rolled_back=True)

    async def _store_failure(
        self, operation: str, exc: SQLAlchemyError, rolled_back: bool = False
    ) -> Outcome:
        logger.error(
            "Store operation failed",
            entity=self.label,
            operation=operation,
            error=str(exc),
        )
        if not rolled_back:
            await self.session.rollback()
        return Outcome.failure(ErrorKind.STORE_ERROR, "Storage operation failed")
