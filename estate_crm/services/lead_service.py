"""
services/lead_service.py
------------------------
Lead operations, all scoped to the caller's company.

History entries and file references are embedded documents on the lead;
helpers here rewrite the whole list through the repository patch path, so
every change also bumps updated_at.

Property and apartment ids written onto a lead, whether on create, on a
patch or through the interest endpoints, must belong to the caller's
company. File keys must sit under the lead's own storage prefix.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.errors import NotFound, Page
from estate_crm.core.logging import get_logger
from estate_crm.core.tenancy import Identity, ensure_tenant_access
from estate_crm.db.base import utcnow
from estate_crm.models.lead import Lead
from estate_crm.repositories.apartment_repo import ApartmentRepository
from estate_crm.repositories.base import field_name
from estate_crm.repositories.lead_repo import LeadRepository
from estate_crm.repositories.property_repo import PropertyRepository
from estate_crm.schemas.lead import FileReferenceCreate, HistoryEntryCreate, LeadCreate
from estate_crm.services.property_service import file_entry
from estate_crm.services.storage_service import StorageService

logger = get_logger(__name__)

# Fields of the "current pick" that describe the chosen property/apartment.
_CURRENT_PICK_RESET = {
    "property_id": "",
    "property_name": "",
    "property_address": "",
    "apartment": "",
    "apartment_id": "",
    "apartment_rooms": None,
    "apartment_area": None,
    "apartment_price": None,
}

_PROTECTED_HISTORY_KEYS = {"id", "createdAt"}
_COLLECTION = "leads"


class LeadService:

    @staticmethod
    async def _require_references(
        db: AsyncSession,
        identity: Identity,
        property_ids: Sequence[str],
        apartment_ids: Sequence[str] = (),
    ) -> None:
        for property_id in dict.fromkeys(filter(None, property_ids)):
            prop = (await PropertyRepository(db).get_by_id(property_id)).unwrap()
            ensure_tenant_access(identity, prop, "Property", "Property access denied")
        for apartment_id in dict.fromkeys(filter(None, apartment_ids)):
            apartment = (await ApartmentRepository(db).get_by_id(apartment_id)).unwrap()
            ensure_tenant_access(identity, apartment, "Apartment", "Apartment access denied")

    @staticmethod
    async def list_leads(
        db: AsyncSession,
        identity: Identity,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Page[Lead]:
        return (
            await LeadRepository(db).get_by_tenant(identity.company_id, page_size, cursor)
        ).unwrap()

    @staticmethod
    async def search_leads(db: AsyncSession, identity: Identity, term: str) -> List[Lead]:
        return (await LeadRepository(db).search(identity.company_id, term)).unwrap()

    @staticmethod
    async def list_by_property(
        db: AsyncSession,
        identity: Identity,
        property_id: str,
        page_size: Optional[int] = None,
        cursor: Optional[str] = None,
    ) -> Page[Lead]:
        prop = (await PropertyRepository(db).get_by_id(property_id)).unwrap()
        ensure_tenant_access(identity, prop, "Property", "Property access denied")
        return (
            await LeadRepository(db).get_by_foreign_key(
                "property_of_interest",
                property_id,
                page_size,
                cursor,
                company_id=identity.company_id,
            )
        ).unwrap()

    @staticmethod
    async def get_lead(db: AsyncSession, identity: Identity, lead_id: str) -> Lead:
        lead = (await LeadRepository(db).get_by_id(lead_id)).unwrap()
        return ensure_tenant_access(identity, lead, "Lead")

    @staticmethod
    async def create_lead(db: AsyncSession, identity: Identity, data: LeadCreate) -> Lead:
        await LeadService._require_references(
            db, identity, data.properties_of_interest + [data.property_id], [data.apartment_id]
        )
        values = data.model_dump()
        values["company_id"] = identity.company_id
        lead = (await LeadRepository(db).create(values)).unwrap()
        logger.info("Lead created", lead_id=lead.id, company_id=lead.company_id)
        return lead

    @staticmethod
    async def update_lead(
        db: AsyncSession, identity: Identity, lead_id: str, fields: Dict[str, Any]
    ) -> Lead:
        lead = await LeadService.get_lead(db, identity, lead_id)
        known = set(lead.properties_of_interest) | {lead.property_id}
        property_ids: List[str] = []
        apartment_ids: List[str] = []
        for key, value in fields.items():
            name = field_name(key)
            if name == "property_id" and isinstance(value, str):
                property_ids.append(value)
            elif name == "properties_of_interest" and isinstance(value, list):
                property_ids.extend(pid for pid in value if isinstance(pid, str))
            elif name == "apartment_id" and isinstance(value, str) and value != lead.apartment_id:
                apartment_ids.append(value)
        await LeadService._require_references(
            db, identity, [pid for pid in property_ids if pid not in known], apartment_ids
        )
        return (await LeadRepository(db).patch(lead.id, fields)).unwrap()

    @staticmethod
    async def update_status(
        db: AsyncSession, identity: Identity, lead_id: str, status: str
    ) -> Lead:
        return await LeadService.update_lead(db, identity, lead_id, {"status": status})

    @staticmethod
    async def delete_lead(db: AsyncSession, identity: Identity, lead_id: str) -> None:
        lead = await LeadService.get_lead(db, identity, lead_id)
        (await LeadRepository(db).delete(lead.id)).unwrap()

    # ── Property interests ───────────────────────────────────────────────────

    @staticmethod
    async def add_property_interest(
        db: AsyncSession, identity: Identity, lead_id: str, property_id: str
    ) -> Lead:
        lead = await LeadService.get_lead(db, identity, lead_id)
        prop = (await PropertyRepository(db).get_by_id(property_id)).unwrap()
        ensure_tenant_access(identity, prop, "Property", "Property access denied")
        if property_id in lead.properties_of_interest:
            return lead
        return (
            await LeadRepository(db).patch(
                lead.id, {"properties_of_interest": lead.properties_of_interest + [property_id]}
            )
        ).unwrap()

    @staticmethod
    async def remove_property_interest(
        db: AsyncSession, identity: Identity, lead_id: str, property_id: str
    ) -> Lead:
        lead = await LeadService.get_lead(db, identity, lead_id)
        changes: Dict[str, Any] = {
            "properties_of_interest": [
                pid for pid in lead.properties_of_interest if pid != property_id
            ]
        }
        if lead.property_id == property_id:
            changes.update(_CURRENT_PICK_RESET)
        return (await LeadRepository(db).patch(lead.id, changes)).unwrap()

    # ── History ──────────────────────────────────────────────────────────────

    @staticmethod
    async def add_history_entry(
        db: AsyncSession, identity: Identity, lead_id: str, data: HistoryEntryCreate
    ) -> Lead:
        lead = await LeadService.get_lead(db, identity, lead_id)
        entry = {
            "id": str(uuid.uuid4()),
            "type": data.type,
            "date": data.date,
            "time": data.time or datetime.now().strftime("%H:%M"),
            "notes": data.notes,
            "createdAt": utcnow().isoformat(),
        }
        return (
            await LeadRepository(db).patch(lead.id, {"history": [entry] + lead.history})
        ).unwrap()

    @staticmethod
    async def update_history_entry(
        db: AsyncSession,
        identity: Identity,
        lead_id: str,
        entry_id: str,
        changes: Dict[str, Any],
    ) -> Lead:
        lead = await LeadService.get_lead(db, identity, lead_id)
        history = [dict(entry) for entry in lead.history]
        for entry in history:
            if entry.get("id") == entry_id:
                entry.update(
                    {k: v for k, v in changes.items() if k not in _PROTECTED_HISTORY_KEYS}
                )
                entry["updatedAt"] = utcnow().isoformat()
                break
        else:
            raise NotFound("History entry not found")
        return (await LeadRepository(db).patch(lead.id, {"history": history})).unwrap()

    @staticmethod
    async def delete_history_entry(
        db: AsyncSession, identity: Identity, lead_id: str, entry_id: str
    ) -> Lead:
        lead = await LeadService.get_lead(db, identity, lead_id)
        history = [entry for entry in lead.history if entry.get("id") != entry_id]
        return (await LeadRepository(db).patch(lead.id, {"history": history})).unwrap()

    # ── Files ────────────────────────────────────────────────────────────────

    @staticmethod
    async def add_file(
        db: AsyncSession, identity: Identity, lead_id: str, data: FileReferenceCreate
    ) -> Lead:
        lead = await LeadService.get_lead(db, identity, lead_id)
        entry = file_entry(_COLLECTION, lead.id, data)
        return (await LeadRepository(db).patch(lead.id, {"files": lead.files + [entry]})).unwrap()

    @staticmethod
    async def delete_file(
        db: AsyncSession, identity: Identity, lead_id: str, file_id: str
    ) -> Lead:
        lead = await LeadService.get_lead(db, identity, lead_id)
        entry = next((item for item in lead.files if item.get("id") == file_id), None)
        if entry is None:
            raise NotFound("File not found")
        remaining = [item for item in lead.files if item.get("id") != file_id]
        lead = (await LeadRepository(db).patch(lead.id, {"files": remaining})).unwrap()
        if StorageService.owns_key(_COLLECTION, lead.id, entry.get("s3Key")):
            await StorageService.delete_quietly(entry["s3Key"])
        return lead

    @staticmethod
    async def presign_upload(
        db: AsyncSession,
        identity: Identity,
        lead_id: str,
        file_name: str,
        content_type: str,
        kind: str = "files",
    ) -> Dict[str, Any]:
        lead = await LeadService.get_lead(db, identity, lead_id)
        key = StorageService.build_key(_COLLECTION, lead.id, kind, file_name)
        return {
            "upload_url": await StorageService.presign_upload(key, content_type),
            "s3_key": key,
            "file_url": StorageService.object_url(key),
        }
