"""Property repository: status filter and map-bounds lookups."""

from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from estate_crm.core.errors import ErrorKind, Outcome
from estate_crm.models.property import UNNAMED_PROPERTY, Property, PropertyStatus
from estate_crm.repositories import fields
from estate_crm.repositories.base import EntityRepository


class PropertyRepository(EntityRepository[Property]):
    model = Property
    label = "Property"
    field_coercers = {
        "name": fields.text(max_length=255, required=False),
        "address": fields.text(max_length=500, required=False),
        "status": fields.choice(PropertyStatus),
        "images": fields.string_list(),
        "main_image": fields.text(max_length=1024, required=False),
        "description": fields.blank_text(),
        "coordinates": fields.coordinates(),
        "files": fields.document_list(),
    }
    search_fields = ("name", "address")

    def build(self, values: Dict[str, Any]) -> Property:
        if not values.get("name"):
            values["name"] = values.get("address") or UNNAMED_PROPERTY
        return Property(**values)

    def assign(self, entity: Property, name: str, value: Any) -> None:
        if name == "name" and not value:
            value = entity.address or UNNAMED_PROPERTY
        setattr(entity, name, value)

    async def list_by_status(self, company_id: str, status: str) -> Outcome[List[Property]]:
        try:
            status = PropertyStatus(status).value
        except ValueError:
            return Outcome.failure(ErrorKind.INVALID_ARGUMENT, f"Invalid status '{status}'")
        try:
            result = await self.session.execute(
                select(Property)
                .where(Property.company_id == company_id, Property.status == status)
                .order_by(Property.created_at.desc(), Property.id.desc())
            )
        except SQLAlchemyError as exc:
            return await self._store_failure("list_by_status", exc)
        return Outcome.success(list(result.scalars().all()))

    async def list_within_bounds(
        self, company_id: str, south: float, west: float, north: float, east: float
    ) -> Outcome[List[Property]]:
        """Properties whose coordinates fall inside the box. Handles antimeridian boxes."""
        scanned = await self.scan_tenant(company_id)
        if not scanned.ok:
            return scanned

        def inside(point: Dict[str, float]) -> bool:
            lat, lng = point.get("lat"), point.get("lng")
            if lat is None or lng is None or not south <= lat <= north:
                return False
            if west <= east:
                return west <= lng <= east
            return lng >= west or lng <= east

        return Outcome.success(
            [prop for prop in scanned.data if prop.coordinates and inside(prop.coordinates)]
        )
