"""
repositories/lead_repo.py
-------------------------
Lead repository.

The property of the lead's current pick (property_id) is always a member
of properties_of_interest; both write paths keep that in sync. property_id
is declared before properties_of_interest so a patch touching both applies
the new pick first and rebuilds the interest set once.
"""

from typing import Any, Dict, List

from sqlalchemy import Select

from estate_crm.models.lead import Lead, LeadPropertyInterest, LeadStatus
from estate_crm.repositories import fields
from estate_crm.repositories.base import EntityRepository


def _interested_in(stmt: Select, property_id: Any) -> Select:
    return stmt.join(Lead.interests).where(LeadPropertyInterest.property_id == property_id)


def _current_pick(stmt: Select, property_id: Any) -> Select:
    return stmt.where(Lead.property_id == property_id)


def _with_current_pick(property_ids: List[str], current: str) -> List[str]:
    if current and current not in property_ids:
        return list(property_ids) + [current]
    return list(property_ids)


class LeadRepository(EntityRepository[Lead]):
    model = Lead
    label = "Lead"
    field_coercers = {
        "name": fields.text(max_length=255),
        "phone": fields.text(max_length=50, required=False),
        "email": fields.text(max_length=320, required=False),
        "notes": fields.blank_text(),
        "status": fields.choice(LeadStatus),
        "interest": fields.blank_text(max_length=255),
        "property_id": fields.blank_text(max_length=36),
        "property_name": fields.blank_text(max_length=255),
        "property_address": fields.blank_text(max_length=500),
        "apartment": fields.blank_text(max_length=100),
        "apartment_id": fields.blank_text(max_length=36),
        "apartment_rooms": fields.integer(minimum=0),
        "apartment_area": fields.number(minimum=0),
        "apartment_price": fields.number(minimum=0),
        "properties_of_interest": fields.string_list(),
        "history": fields.document_list(),
        "files": fields.document_list(),
    }
    search_fields = ("name", "phone")
    relation_filters = {
        "property_of_interest": _interested_in,
        "property": _current_pick,
    }

    def build(self, values: Dict[str, Any]) -> Lead:
        interests = values.pop("properties_of_interest", None) or []
        lead = Lead(**values)
        lead.set_properties_of_interest(_with_current_pick(interests, lead.property_id))
        return lead

    def assign(self, lead: Lead, name: str, value: Any) -> None:
        if name == "properties_of_interest":
            lead.set_properties_of_interest(_with_current_pick(value, lead.property_id))
            return
        setattr(lead, name, value)
        if name == "property_id" and value:
            lead.set_properties_of_interest(
                _with_current_pick(lead.properties_of_interest, value)
            )
