"""Apartment repository."""

from typing import Any

from sqlalchemy import Select

from estate_crm.models.apartment import Apartment
from estate_crm.repositories import fields
from estate_crm.repositories.base import EntityRepository


def _in_property(stmt: Select, property_id: Any) -> Select:
    return stmt.where(Apartment.property_id == property_id)


class ApartmentRepository(EntityRepository[Apartment]):
    model = Apartment
    label = "Apartment"
    field_coercers = {
        "property_id": fields.text(max_length=36),
        "apartment_number": fields.text(max_length=50),
        "rooms": fields.integer(minimum=0),
        "area": fields.number(minimum=0),
        "price": fields.number(minimum=0),
        "images": fields.string_list(),
        "documents": fields.document_list(),
    }
    search_fields = ("apartment_number", "property_id")
    relation_filters = {"property": _in_property}
